from __future__ import annotations

import asyncio
import datetime as dt
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from .utils import get_extension, join_path, normalize_path

Loader = Callable[[Path], dict]


@dataclass
class EntryInfo:
    mtime: Optional[dt.datetime] = None
    birthtime: Optional[dt.datetime] = None


class Entry:
    """A file or directory of the source tree."""

    def __init__(self, name: str, path: str, type: str, src: Optional[Path] = None) -> None:
        self.name = name
        self.path = path
        self.type = type
        self.src = src
        self.children: dict[str, Entry] = {}
        self._content: dict[Loader, dict] = {}
        self._info: Optional[EntryInfo] = None

    def __repr__(self) -> str:
        return f"Entry({self.type} {self.path})"

    def add(self, entry: Entry) -> Entry:
        self.children[entry.name] = entry
        return entry

    async def get_content(self, loader: Loader) -> dict:
        if loader not in self._content:
            if self.src is None:
                raise FileNotFoundError(f"Entry has no source file: {self.path}")
            self._content[loader] = await asyncio.to_thread(loader, self.src)
        return self._content[loader]

    def get_info(self) -> Optional[EntryInfo]:
        if self._info is None and self.src is not None:
            try:
                stat = self.src.stat()
            except OSError:
                return None
            mtime = dt.datetime.fromtimestamp(stat.st_mtime, tz=dt.timezone.utc)
            birth = getattr(stat, "st_birthtime", None)
            birthtime = dt.datetime.fromtimestamp(birth, tz=dt.timezone.utc) if birth else None
            self._info = EntryInfo(mtime=mtime, birthtime=birthtime)
        return self._info


class FS:
    """Reads a source directory into an in-memory entry tree."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.entries: dict[str, Entry] = {}

    def update(self) -> FS:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Source directory not found: {self.root}")
        self.entries = {}
        root = Entry("", "/", "directory", self.root)
        self.entries["/"] = root
        self._scan(root)
        return self

    def _scan(self, directory: Entry) -> None:
        with os.scandir(directory.src) as scan:
            items = sorted(scan, key=lambda item: item.name)
        for item in items:
            kind = "directory" if item.is_dir() else "file"
            entry = directory.add(
                Entry(item.name, join_path(directory.path, item.name), kind, Path(item.path))
            )
            self.entries[entry.path] = entry
            if kind == "directory":
                self._scan(entry)


@dataclass
class PageSource:
    path: str
    ext: str = ""
    asset: bool = False
    slug: str = ""
    entry: Optional[Entry] = None
    created: Optional[dt.datetime] = None
    last_modified: Optional[dt.datetime] = None


@dataclass(eq=False)
class Page:
    src: PageSource
    data: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Page({self.src.path!r}, url={self.data.get('url')!r})"

    @property
    def url(self) -> Any:
        return self.data.get("url")

    @property
    def content(self) -> Any:
        return self.data.get("content")

    @classmethod
    def create(cls, url: str, content: str) -> Page:
        url = normalize_path(url)
        ext = get_extension(url)
        path = url[: -len(ext)] if ext else url
        page = cls(
            PageSource(path=path, ext=ext, slug=path.rsplit("/", 1)[-1]),
            {"url": url, "content": content, "date": dt.datetime.now(dt.timezone.utc)},
        )
        page.data["page"] = page
        return page


@dataclass
class StaticFile:
    entry: Entry
    output_path: str
