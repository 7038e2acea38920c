from typing import Optional


class BaseTitleProvider:
    """
    One way of turning a URL into a title.

    ``matches`` decides structurally whether the provider applies to a URL.
    ``resolve`` returns the raw (not yet normalized) title or None.
    """

    name = "base"

    def matches(self, url: str) -> bool:
        raise NotImplementedError

    async def resolve(self, url: str, lang: str) -> Optional[str]:
        raise NotImplementedError
