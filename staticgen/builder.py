from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .content import load_posts, sort_by_date
from .errors import SiteError
from .model import SiteModel
from .pages import PageComposer, build_pages, build_posts
from .projects import load_project_categories
from .render import clean_output_dir, copy_static
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)


class BuildStage(enum.Enum):
    IDLE = "idle"
    CLEANING = "cleaning output"
    COPYING_ASSETS = "copying assets"
    LOADING_TEMPLATES = "loading templates"
    LOADING_CONTENT = "loading content"
    COMPOSING_PAGES = "composing pages"
    COMPOSING_POSTS = "composing posts"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildReport:
    stage: BuildStage = BuildStage.IDLE
    failed_stage: Optional[BuildStage] = None
    error: Optional[Exception] = None
    pages: list[Path] = field(default_factory=list)
    posts: list[Path] = field(default_factory=list)
    assets_copied: int = 0
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.stage is BuildStage.DONE


class SiteBuilder:
    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self._outputs: set[Path] = set()

    def run(self) -> BuildReport:
        report = BuildReport()
        start = time.perf_counter()
        try:
            self._run(report)
        except (SiteError, OSError) as exc:
            report.failed_stage = report.stage
            report.stage = BuildStage.FAILED
            report.error = exc
            logger.error("Build failed while %s: %s", report.failed_stage.value, exc)
        report.elapsed = time.perf_counter() - start
        return report

    def _enter(self, report: BuildReport, stage: BuildStage) -> None:
        logger.debug("Build stage: %s", stage.value)
        report.stage = stage

    def _run(self, report: BuildReport) -> None:
        config = self.config
        output_dir = config.output_dir

        if config.clean:
            self._enter(report, BuildStage.CLEANING)
            clean_output_dir(output_dir, config.root_dir)

        self._enter(report, BuildStage.COPYING_ASSETS)
        output_dir.mkdir(parents=True, exist_ok=True)
        report.assets_copied = copy_static(config.static_dir, output_dir, incremental=config.incremental_assets)

        self._enter(report, BuildStage.LOADING_TEMPLATES)
        registry = TemplateRegistry.load(config.templates_dir)
        registry.require(config.layout)
        pages = TemplateRegistry.load(config.pages_dir, extra_paths=[config.templates_dir], keep_suffix=True)

        self._enter(report, BuildStage.LOADING_CONTENT)
        posts = sort_by_date(
            load_posts(config.blog_source, config.content_extension, workers=config.build_workers)
        )
        projects = load_project_categories(config.projects_source)
        model = SiteModel(
            site_name=config.site_name,
            content={
                "blog": [post for post in posts if not post.draft],
                "projects": projects,
            },
        )
        composer = PageComposer(registry, model, layout=config.layout, post_template=config.post_template)

        self._enter(report, BuildStage.COMPOSING_PAGES)
        report.pages = build_pages(composer, pages, output_dir)

        self._enter(report, BuildStage.COMPOSING_POSTS)
        report.posts = build_posts(composer, posts, output_dir, subdir=config.blog_dir)
        self._prune(set(report.pages) | set(report.posts))

        self._enter(report, BuildStage.DONE)
        logger.info(
            "Built %d page(s) and %d post(s) into %s", len(report.pages), len(report.posts), output_dir
        )

    def _prune(self, written: set[Path]) -> None:
        # pages and posts written by an earlier run of this builder but not this one
        for path in sorted(self._outputs - written):
            if path.is_file():
                logger.info("Removing stale output %s", path)
                path.unlink()
        self._outputs = written
