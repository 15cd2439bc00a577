from pathlib import Path

import pytest

from staticgen.config import SiteConfig

LAYOUT = "<h1>{{ SiteName }}</h1>{{ Content }}"
POST_TEMPLATE = "<h2>{{ Title }}</h2>{{ Body }}"


def write_tree(root: Path, files: dict) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(text, bytes):
            path.write_bytes(text)
        else:
            path.write_text(text, encoding="utf-8")


@pytest.fixture
def make_site(tmp_path):
    """Lay out a minimal site under tmp_path and return its config."""

    def _make(files: dict | None = None, **settings) -> SiteConfig:
        tree = {
            "templates/main.html": LAYOUT,
            "templates/post.html": POST_TEMPLATE,
            "pages/index.html": "{{ SiteName }}",
            "static/css/site.css": "body { margin: 0; }",
            "content/blog/hello.md": "---\ntitle:Hello\ndate:2023-05-01\n---\nHello, world.\n",
        }
        tree.update(files or {})
        write_tree(tmp_path, {rel: text for rel, text in tree.items() if text is not None})
        for rel in ("static", "content/blog"):
            (tmp_path / rel).mkdir(parents=True, exist_ok=True)
        data = {"siteName": "My Site"}
        data.update(settings)
        return SiteConfig.from_mapping(data, base_dir=tmp_path)

    return _make
