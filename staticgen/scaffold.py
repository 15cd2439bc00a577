from __future__ import annotations

import logging
from pathlib import Path

from .config import DEFAULT_CONFIG
from .errors import ScaffoldError
from .render import write_text

logger = logging.getLogger(__name__)

SITE_DIRS = ("static", "templates", "content/blog", "content/projects", "pages")

CONFIG_TOML = """siteName = "{name}"
outputDir = "public"
port = 8000
"""

MAIN_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ PageTitle }}</title>
</head>
<body>
  <header><h1>{{ SiteName }}</h1></header>
  <main>{{ Content }}</main>
</body>
</html>
"""

POST_TEMPLATE = """<article>
  <h2>{{ Title }}</h2>
  <time datetime="{{ Date }}">{{ Date }}</time>
  {{ Body }}
</article>
"""

INDEX_PAGE = """<h2>Posts</h2>
<ul>
{% for post in SiteContent.blog %}
  <li><a href="blog/{{ post.slug }}">{{ post.title }}</a></li>
{% endfor %}
</ul>
"""

SAMPLE_POST = """---
title:Hello
date:{date}
draft:true
---
Your first post. Set `draft` to anything but `true` to publish it.
"""


def init_site(root: Path, name: str = "My Site", date: str = "2023-05-01") -> list[Path]:
    config_path = root / DEFAULT_CONFIG
    if config_path.exists():
        raise ScaffoldError("a site already exists here", config_path)
    created = []
    for rel in SITE_DIRS:
        path = root / rel
        path.mkdir(parents=True, exist_ok=True)
        created.append(path)
    files = {
        config_path: CONFIG_TOML.format(name=name),
        root / "templates" / "main.html": MAIN_TEMPLATE,
        root / "templates" / "post.html": POST_TEMPLATE,
        root / "pages" / "index.html": INDEX_PAGE,
        root / "content" / "blog" / "hello.md": SAMPLE_POST.format(date=date),
    }
    for path, text in files.items():
        if path.exists():
            logger.info("Keeping existing %s", path)
            continue
        write_text(path, text)
        created.append(path)
    return created
