from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .errors import AssetCopyError, OutputError

logger = logging.getLogger(__name__)


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def needs_copy(src: Path, dest: Path) -> bool:
    if not dest.exists():
        return True
    return src.stat().st_mtime > dest.stat().st_mtime


def _copy_tree(src: Path, dest: Path, incremental: bool) -> int:
    dest.mkdir(parents=True, exist_ok=True)
    copied = 0
    for item in sorted(src.iterdir(), key=lambda p: p.name):
        target = dest / item.name
        if item.is_dir():
            copied += _copy_tree(item, target, incremental)
            continue
        if incremental and not needs_copy(item, target):
            continue
        logger.debug("Copying %s to %s", item, target)
        shutil.copy2(item, target)
        copied += 1
    return copied


def copy_static(static_dir: Path, output_dir: Path, incremental: bool = True) -> int:
    if not static_dir.is_dir():
        raise AssetCopyError("static directory not found", static_dir)
    try:
        return _copy_tree(static_dir, output_dir, incremental)
    except OSError as exc:
        raise AssetCopyError(f"cannot copy static assets: {exc}", exc.filename or static_dir) from exc


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise OutputError("refusing to clean the project root", output_dir)
    if not output_resolved.is_relative_to(root_resolved):
        raise OutputError("refusing to clean an output directory outside the project root", output_dir)
    logger.info("Cleaning %s", output_dir)
    try:
        shutil.rmtree(output_dir)
    except OSError as exc:
        raise OutputError(f"cannot clean output directory: {exc}", output_dir) from exc
