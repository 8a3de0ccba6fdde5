from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .filesystem import Loader

PAGE = "page"
ASSET = "asset"


@dataclass
class Format:
    """How files with a given extension are handled.

    ``copy`` marks verbatim copies (a callable rewrites the destination),
    ``page_type`` marks pages (``"page"``) or opaque asset pages (``"asset"``),
    ``data_loader`` is used for ``_data`` files.
    """

    ext: str
    page_type: Optional[str] = None
    loader: Optional[Loader] = None
    asset_loader: Optional[Loader] = None
    data_loader: Optional[Loader] = None
    component_loader: Optional[Loader] = None
    copy: Union[bool, Callable[[str], str]] = False

    @property
    def asset(self) -> bool:
        return self.page_type == ASSET

    @property
    def page_loader(self) -> Optional[Loader]:
        if self.asset and self.asset_loader is not None:
            return self.asset_loader
        return self.loader


class Formats:
    def __init__(self) -> None:
        self.entries: dict[str, Format] = {}

    def set(self, format: Format) -> None:
        self.entries[format.ext.lower()] = format

    def get(self, ext: str) -> Optional[Format]:
        return self.entries.get(ext.lower())

    def search(self, path: str) -> Optional[Format]:
        """Format with the longest extension matching the end of ``path``."""
        name = path.rsplit("/", 1)[-1].lower()
        for ext in sorted(self.entries, key=len, reverse=True):
            if name.endswith(ext) and len(name) > len(ext):
                return self.entries[ext]
        return None
