from __future__ import annotations

import datetime as dt
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, TypeVar

import markdown
from markupsafe import Markup

from .errors import ContentError

logger = logging.getLogger(__name__)

DELIMITER = "---"
DATE_FMT = "%Y-%m-%d"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

T = TypeVar("T")


@dataclass(frozen=True)
class FrontMatter:
    title: str = ""
    date: dt.date = dt.date.min
    draft: bool = False


@dataclass(frozen=True)
class Post:
    title: str
    date: dt.date
    draft: bool
    body: Markup
    slug: str
    source: Path


def _strip_newline(line: str) -> str:
    return line.rstrip("\r\n")


def parse_date(value: str, source: str) -> dt.date:
    try:
        return dt.datetime.strptime(value.strip(), DATE_FMT).date()
    except ValueError:
        logger.warning("Invalid date %r in %s, expected YYYY-MM-DD", value.strip(), source)
        return dt.date.min


def parse_front_matter(text: str, source: str = "<string>") -> tuple[FrontMatter, str]:
    clean_text = text.lstrip("\ufeff")
    stream = io.StringIO(clean_text)
    first = stream.readline()
    if not first:
        return FrontMatter(), ""
    if _strip_newline(first) != DELIMITER:
        logger.warning("Missing front matter delimiter in %s", source)
        return FrontMatter(), clean_text

    meta = {}
    offset = len(first)
    closed = False
    for line in stream:
        offset += len(line)
        value = _strip_newline(line)
        if value == DELIMITER:
            closed = True
            break
        key, sep, rest = value.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key == "title":
            meta["title"] = rest
        elif key == "date":
            meta["date"] = parse_date(rest, source)
        elif key == "draft":
            meta["draft"] = rest.strip() == "true"
    if not closed:
        logger.warning("Front matter in %s is never closed with %r", source, DELIMITER)
    return FrontMatter(**meta), clean_text[offset:]


def render_markdown(text: str) -> Markup:
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
    return Markup(md.convert(text))


def slug_for(path: Path) -> str:
    return path.with_suffix(".html").name


def parse_post(path: Path, text: str) -> Post:
    meta, body = parse_front_matter(text, str(path))
    return Post(
        title=meta.title,
        date=meta.date,
        draft=meta.draft,
        body=render_markdown(body),
        slug=slug_for(path),
        source=path,
    )


def discover_files(root: Path) -> list[Path]:
    files = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            files.extend(discover_files(entry))
        else:
            files.append(entry)
    return files


def read_post(path: Path) -> Post:
    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentError(f"cannot read content file: {exc}", path) from exc
    logger.debug("Parsed post %s", path)
    return parse_post(path, text)


def load_posts(root: Path, extension: str = ".md", workers: int = 1) -> list[Post]:
    if not root.is_dir():
        raise ContentError("content directory not found", root)
    try:
        candidates = discover_files(root)
    except OSError as exc:
        raise ContentError(f"cannot list content directory: {exc}", root) from exc

    selected = []
    for path in candidates:
        if path.suffix != extension:
            logger.info("Skipping %s due to unknown file extension", path)
            continue
        selected.append(path)

    parse_workers = min(workers, len(selected)) if selected else 1
    if parse_workers > 1:
        with ThreadPoolExecutor(max_workers=parse_workers) as executor:
            return list(executor.map(read_post, selected))
    return [read_post(path) for path in selected]


def sort_by_date(entries: Iterable[T]) -> list[T]:
    return sorted(entries, key=lambda e: getattr(e, "date", None) or dt.date.min, reverse=True)
