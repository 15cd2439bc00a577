from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping

from jinja2 import Template
from markupsafe import Markup

from .content import Post
from .model import SiteModel
from .render import write_text
from .templates import TemplateRegistry, render

logger = logging.getLogger(__name__)


class PageComposer:
    def __init__(
        self,
        registry: TemplateRegistry,
        model: SiteModel,
        layout: str = "main",
        post_template: str = "post",
    ) -> None:
        registry.require(layout)
        self.registry = registry
        self.model = model
        self.layout = layout
        self.post_template = post_template

    def compose(self, inner: Template, **extra: object) -> str:
        body = Markup(render(inner, self.model.context(**extra)))
        return render(self.registry[self.layout], self.model.context(Content=body, **extra))

    def compose_post(self, post: Post) -> str:
        self.registry.require(self.post_template)
        return self.compose(
            self.registry[self.post_template],
            PageTitle=post.title,
            Post=post,
            Title=post.title,
            Date=post.date,
            Body=post.body,
            Slug=post.slug,
        )


def build_pages(composer: PageComposer, pages: Mapping[str, Template], output_dir: Path) -> list[Path]:
    written = []
    for rel, template in sorted(pages.items()):
        target = output_dir / rel
        write_text(target, composer.compose(template))
        logger.info("Writing page %s", rel)
        written.append(target)
    return written


def build_posts(
    composer: PageComposer, posts: Iterable[Post], output_dir: Path, subdir: str = "blog"
) -> list[Path]:
    published, drafts = [], []
    for post in posts:
        (drafts if post.draft else published).append(post)
    if published:
        composer.registry.require(composer.post_template)

    owners: dict[str, Path] = {}
    for post in published:
        if post.slug in owners:
            logger.warning(
                "%s and %s both write %s/%s; the later one wins", owners[post.slug], post.source, subdir, post.slug
            )
        owners[post.slug] = post.source

    for post in drafts:
        logger.debug("Skipping draft %s", post.source)
        target = output_dir / subdir / post.slug
        if post.slug not in owners and target.is_file():
            logger.info("Removing output of draft %s", target.relative_to(output_dir).as_posix())
            target.unlink()

    written = []
    for post in published:
        target = output_dir / subdir / post.slug
        write_text(target, composer.compose_post(post))
        logger.info("Writing post %s", target.relative_to(output_dir).as_posix())
        if target not in written:
            written.append(target)
    return written
