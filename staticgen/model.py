from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class SiteModel:
    site_name: str
    content: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))

    def context(self, **extra: object) -> dict[str, object]:
        data: dict[str, object] = {
            "SiteName": self.site_name,
            "PageTitle": self.site_name,
            "SiteContent": self.content,
        }
        data.update(extra)
        return data
