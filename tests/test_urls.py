"""Tests for sitetree.urls."""

from __future__ import annotations

import pytest

from sitetree.errors import SiteError
from sitetree.filesystem import Entry, Page, PageSource
from sitetree.urls import normalize_url, output_path, resolve_url


def _page(slug: str = "post", url: object = None, **source: object) -> Page:
    data = {} if url is None else {"url": url}
    return Page(PageSource(path=f"/blog/{slug}", slug=slug, **source), data)


def test_pretty_urls() -> None:
    assert resolve_url(_page(), True, "/blog") == "/blog/post/"
    assert resolve_url(_page("index"), True, "/blog") == "/blog/"
    assert resolve_url(_page("index"), True, "/") == "/"


def test_plain_urls() -> None:
    assert resolve_url(_page(), False, "/blog") == "/blog/post.html"
    assert resolve_url(_page("index"), False, "/blog") == "/blog/"


def test_extension_left_on_source_path_is_kept() -> None:
    page = Page(PageSource(path="/feed.xml", slug="feed", ext=".md"))
    assert resolve_url(page, True, "/") == "/feed.xml"


def test_asset_pages_keep_their_extension() -> None:
    page = Page(PageSource(path="/css/site", slug="site", ext=".css", asset=True))
    assert resolve_url(page, True, "/css") == "/css/site.css"


def test_explicit_urls() -> None:
    assert resolve_url(_page(url="./x"), True, "/blog") == "/blog/x"
    assert resolve_url(_page(url="../x/"), True, "/blog") == "/x/"
    assert resolve_url(_page(url="/about/index.html"), True, "/blog") == "/about/"
    assert resolve_url(_page(url="/a//b"), True, "/blog") == "/a/b"


def test_url_function_and_false() -> None:
    assert resolve_url(_page(url=False), True, "/blog") is False
    assert resolve_url(_page(url=lambda page: False), True, "/blog") is False
    assert resolve_url(_page(url=lambda page: f"/p/{page.src.slug}/"), True, "/blog") == "/p/post/"


def test_invalid_urls_raise() -> None:
    with pytest.raises(SiteError) as excinfo:
        resolve_url(_page(url="other"), True, "/blog")
    assert excinfo.value.context["url"] == "other"
    assert excinfo.value.context["path"] == "/blog/post"

    with pytest.raises(SiteError):
        resolve_url(_page(url=42), True, "/blog")

    with pytest.raises(SiteError):
        resolve_url(_page(url=lambda page: None), True, "/blog")


def test_normalize_url() -> None:
    assert normalize_url("/blog/index.html") == "/blog/"
    assert normalize_url("/index.html") == "/"
    assert normalize_url("/blog/post.html") == "/blog/post.html"


def test_output_path() -> None:
    entry = Entry("logo.png", "/img/logo.png", "file")
    assert output_path(entry, "/img") == "/img/logo.png"
    assert output_path(entry, "/img", "/logo.png") == "/logo.png"
    assert output_path(entry, "/img", lambda path: path.upper()) == "/IMG/LOGO.PNG"
