from __future__ import annotations

from pathlib import Path
from typing import Optional


class SiteError(Exception):
    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.path}: {self.message}"


class ConfigError(SiteError):
    pass


class ContentError(SiteError):
    pass


class ProjectDecodeError(SiteError):
    pass


class AssetCopyError(SiteError):
    pass


class ScaffoldError(SiteError):
    pass


class TemplateError(SiteError):
    pass


class TemplateCompileError(TemplateError):
    def __init__(self, message: str, path: Optional[Path | str] = None, line: Optional[int] = None) -> None:
        self.line = line
        super().__init__(message, path)

    def __str__(self) -> str:
        text = super().__str__()
        if self.line is not None:
            return f"{text} (line {self.line})"
        return text


class MissingTemplateError(TemplateError, KeyError):
    pass


class TemplateRenderError(TemplateError):
    pass


class OutputError(SiteError):
    pass


class ServeError(SiteError):
    pass
