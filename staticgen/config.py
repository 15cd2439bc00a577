from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .errors import ConfigError

DEFAULT_CONFIG = "site.toml"

TRUE_VALUES = {"1", "true", "yes", "on"}

_DIR_FIELDS = ("templates_dir", "static_dir", "content_dir", "pages_dir", "output_dir")
_ALIASES = {
    "siteName": "site_name",
    "templatesDir": "templates_dir",
    "staticDir": "static_dir",
    "contentDir": "content_dir",
    "pagesDir": "pages_dir",
    "outputDir": "output_dir",
    "blogDir": "blog_dir",
    "projectsDir": "projects_dir",
    "postTemplate": "post_template",
    "contentExtension": "content_extension",
    "incrementalAssets": "incremental_assets",
    "buildWorkers": "build_workers",
}


def _as_int(value: object, key: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"setting {key!r} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class SiteConfig:
    site_name: str
    templates_dir: Path = Path("templates")
    static_dir: Path = Path("static")
    content_dir: Path = Path("content")
    pages_dir: Path = Path("pages")
    output_dir: Path = Path("public")
    blog_dir: str = "blog"
    projects_dir: str = "projects"
    layout: str = "main"
    post_template: str = "post"
    content_extension: str = ".md"
    host: str = "127.0.0.1"
    port: int = 8000
    incremental_assets: bool = True
    build_workers: int = 1
    clean: bool = False
    root_dir: Path = Path(".")

    @property
    def blog_source(self) -> Path:
        return self.content_dir / self.blog_dir

    @property
    def projects_source(self) -> Path:
        return self.content_dir / self.projects_dir

    @property
    def watch_roots(self) -> dict[str, Path]:
        return {
            "templates": self.templates_dir,
            "static": self.static_dir,
            "content": self.content_dir,
            "pages": self.pages_dir,
        }

    @classmethod
    def from_mapping(cls, data: dict, base_dir: Path | None = None) -> SiteConfig:
        values = {}
        for key, value in data.items():
            values[_ALIASES.get(key, key)] = value
        site_name = values.get("site_name")
        if not site_name:
            raise ConfigError("missing required setting 'siteName'")

        known = {item.name for item in fields(cls)}
        kwargs: dict[str, object] = {"site_name": str(site_name)}
        for key, value in values.items():
            if key not in known or key in {"site_name", "root_dir"} or value is None:
                continue
            if key in _DIR_FIELDS:
                path = Path(str(value))
                if base_dir is not None and not path.is_absolute():
                    path = base_dir / path
                kwargs[key] = path
            elif key == "port":
                kwargs[key] = _as_int(value, "port")
            elif key == "build_workers":
                kwargs[key] = max(1, _as_int(value, "build_workers"))
            elif key in {"incremental_assets", "clean"}:
                kwargs[key] = value if isinstance(value, bool) else str(value).strip().lower() in TRUE_VALUES
            else:
                kwargs[key] = str(value)
        if base_dir is not None:
            for key in _DIR_FIELDS:
                if key not in kwargs:
                    kwargs[key] = base_dir / getattr(cls, key)
            kwargs["root_dir"] = base_dir
        return cls(**kwargs)


def _parse(path: Path, text: str) -> object:
    suffix = path.suffix.lower()
    if suffix == ".toml":
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML: {exc}", path) from exc
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML: {exc}", path) from exc
        return {} if data is None else data
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc}", path) from exc


def load_config(path: Path) -> SiteConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file: {exc.strerror or exc}", path) from exc
    data = _parse(path, text)
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping", path)
    try:
        return SiteConfig.from_mapping(data, base_dir=path.resolve().parent)
    except ConfigError as exc:
        raise ConfigError(exc.message, path) from exc
