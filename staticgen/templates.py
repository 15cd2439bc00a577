from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from jinja2 import Environment, FileSystemLoader, Template, TemplateSyntaxError, select_autoescape

from .errors import MissingTemplateError, TemplateCompileError, TemplateError, TemplateRenderError
from .helpers import TEMPLATE_HELPERS

logger = logging.getLogger(__name__)


def make_environment(*search_paths: Path) -> Environment:
    env = Environment(
        loader=FileSystemLoader([str(path) for path in search_paths]),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )
    env.globals.update(TEMPLATE_HELPERS)
    env.filters.update(TEMPLATE_HELPERS)
    return env


def template_files(directory: Path) -> list[Path]:
    return sorted((path for path in directory.rglob("*") if path.is_file()), key=lambda p: p.as_posix())


class TemplateRegistry(Mapping[str, Template]):
    def __init__(self, templates: Mapping[str, Template], directory: Path | None = None) -> None:
        self._templates = dict(templates)
        self.directory = directory

    @classmethod
    def load(
        cls, directory: Path, extra_paths: Iterable[Path] = (), keep_suffix: bool = False
    ) -> TemplateRegistry:
        if not directory.is_dir():
            raise TemplateError("template directory not found", directory)
        env = make_environment(directory, *[path for path in extra_paths if path.is_dir()])
        templates = {}
        for path in template_files(directory):
            rel = path.relative_to(directory)
            name = rel.as_posix() if keep_suffix else rel.with_suffix("").as_posix()
            logger.debug("Parsing template %s", name)
            try:
                templates[name] = env.get_template(rel.as_posix())
            except TemplateSyntaxError as exc:
                raise TemplateCompileError(exc.message or "syntax error", path, exc.lineno) from exc
            except (OSError, UnicodeDecodeError) as exc:
                raise TemplateError(f"cannot read template: {exc}", path) from exc
        return cls(templates, directory)

    def __getitem__(self, name: str) -> Template:
        try:
            return self._templates[name]
        except KeyError:
            raise MissingTemplateError(f"template {name!r} not found", self.directory) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def names(self) -> list[str]:
        return sorted(self._templates)

    def require(self, *names: str) -> None:
        missing = [name for name in names if name not in self._templates]
        if missing:
            raise MissingTemplateError(f"required template(s) missing: {', '.join(missing)}", self.directory)


def render(template: Template, context: Mapping[str, object]) -> str:
    try:
        return template.render(context)
    except Exception as exc:
        raise TemplateRenderError(f"cannot render template: {type(exc).__name__}: {exc}", template.filename) from exc
