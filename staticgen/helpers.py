from __future__ import annotations

from typing import Callable, Mapping
from urllib.parse import urlsplit

from markupsafe import Markup


def noescape(value: object) -> Markup:
    return Markup(value)


def _host_labels(url: object) -> list[str]:
    try:
        host = urlsplit(str(url)).hostname or ""
    except ValueError:
        return []
    return host.split(".") if host else []


def domain(url: object) -> str:
    labels = _host_labels(url)
    if len(labels) < 2:
        return ""
    return labels[-2]


def tld(url: object) -> str:
    labels = _host_labels(url)
    if len(labels) < 2:
        return ""
    return labels[-1]


def url_tag(tagged_url: object) -> str:
    return str(tagged_url).partition(":")[0]


def remove_url_tag(tagged_url: object) -> str:
    return str(tagged_url).partition(":")[2]


TEMPLATE_HELPERS: Mapping[str, Callable[[object], str]] = {
    "noescape": noescape,
    "getdomain": domain,
    "gettld": tld,
    "geturltag": url_tag,
    "removeurltag": remove_url_tag,
}
