from __future__ import annotations

import posixpath
from typing import Callable, Optional, Union

from .errors import SiteError
from .filesystem import Entry, Page
from .utils import get_extension, join_path

Destination = Union[str, Callable[[str], str], None]


def normalize_url(url: str) -> str:
    if url.endswith("/index.html"):
        return url[: -len("index.html")]
    return url


def resolve_url(page: Page, pretty_urls: bool, parent_path: str) -> Union[str, bool]:
    """Final output URL of a page, or ``False`` when it must not be emitted."""
    url = page.data.get("url")

    if url is False:
        return False

    if callable(url):
        url = url(page)
        if url is False:
            return False

    if isinstance(url, str):
        if url.startswith(("./", "../")):
            return normalize_url(join_path(parent_path, url))
        if url.startswith("/"):
            return normalize_url(join_path(url))
        raise SiteError(
            'The url variable must start with "/", "./" or "../"',
            path=page.src.path,
            url=url,
        )

    if "url" in page.data and page.data["url"] is not None:
        raise SiteError(
            "The url must be a string or a function returning a string, "
            f"got {type(url).__name__}",
            path=page.src.path,
            url=url,
        )

    url = join_path(parent_path, page.src.slug)
    ext = get_extension(page.src.path)
    if ext:
        return url + ext
    if page.src.asset:
        return url + page.src.ext
    if pretty_urls:
        if posixpath.basename(url) == "index":
            return join_path(posixpath.dirname(url), "/")
        return join_path(url, "/")
    return normalize_url(f"{url}.html")


def output_path(entry: Entry, path: str, dest: Destination = None) -> str:
    """Where a static file lands: rewritten, literal, or mirrored from ``path``."""
    if callable(dest):
        return dest(join_path(path, entry.name))
    if isinstance(dest, str):
        return dest
    return join_path(path, entry.name)
