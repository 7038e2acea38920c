from pydantic import BaseModel, Field, StrictStr
from typing import Optional

class TitleRequest(BaseModel):
    url: StrictStr = Field(description="Link whose page title should be resolved")
    lang: Optional[str] = Field(None, description="Caller locale, forwarded to providers that localize output")

class TitleResponse(BaseModel):
    url: str
    title: Optional[str] = Field(None, description="Resolved title, null when none could be found")
    cached: bool = False
