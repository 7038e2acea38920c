from dataclasses import dataclass, field
from typing import Mapping, Optional

@dataclass
class FetchResult:
    url: str
    status_code: int
    final_url: str
    content: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    fetched_at: str = ""  # ISO 8601

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")
