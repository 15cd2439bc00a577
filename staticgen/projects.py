from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Iterator, List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .content import sort_by_date
from .errors import ProjectDecodeError
from .helpers import remove_url_tag, url_tag

logger = logging.getLogger(__name__)

JSON_SUFFIXES = {".json"}
YAML_SUFFIXES = {".yml", ".yaml"}


class Project(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str
    subtitle: str = ""
    tags: List[str] = Field(default_factory=list)
    image: str = ""
    image_url: str = Field(default="", validation_alias=AliasChoices("imageURL", "image_url"))
    links: List[str] = Field(default_factory=list, validation_alias=AliasChoices("urls", "links"))
    description: str = ""
    date: Optional[dt.date] = None

    @property
    def tagged_links(self) -> list[tuple[str, str]]:
        return [(url_tag(link), remove_url_tag(link)) for link in self.links]


def _documents(data: bytes, source: Path) -> Iterator[object]:
    suffix = source.suffix.lower()
    if suffix in JSON_SUFFIXES:
        document = json.loads(data.decode("utf-8"))
        if isinstance(document, list):
            yield from document
        else:
            yield document
        return
    for document in yaml.safe_load_all(data.decode("utf-8")):
        if document is None:
            continue
        yield document


def decode_projects(data: bytes, source: Path) -> list[Project]:
    projects = []
    try:
        for index, document in enumerate(_documents(data, source)):
            if not isinstance(document, dict):
                raise ProjectDecodeError(f"record {index} is not a mapping", source)
            projects.append(Project.model_validate(document))
    except ValidationError as exc:
        raise ProjectDecodeError(f"invalid project record: {exc}", source) from exc
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ProjectDecodeError(f"cannot decode project file: {exc}", source) from exc
    return projects


def load_projects(directory: Path) -> list[Project]:
    projects = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if path.is_dir():
            continue
        if path.suffix.lower() not in JSON_SUFFIXES | YAML_SUFFIXES:
            logger.info("Skipping project file %s due to unknown file extension", path)
            continue
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ProjectDecodeError(f"cannot read project file: {exc}", path) from exc
        projects.extend(decode_projects(data, path))
    return projects


def load_project_categories(root: Path) -> dict[str, list[Project]]:
    if not root.is_dir():
        logger.info("No projects directory at %s", root)
        return {}
    categories = {}
    loose = load_projects(root)
    if loose:
        categories[""] = sort_by_date(loose)
    for path in sorted(root.iterdir(), key=lambda p: p.name):
        if path.is_dir():
            categories[path.name] = sort_by_date(load_projects(path))
    return categories
