from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Protocol, Union

from .components import ComponentNamespace, ExtraCode, Registry, merge_components
from .data import merge_data
from .dates import DateResolver, now, resolve_date
from .errors import SiteError
from .filesystem import FS, Entry, Page, PageSource, StaticFile
from .formats import Formats
from .urls import Destination, output_path, resolve_url
from .utils import join_path, normalize_path, parse_date_from_name, strip_extensions

DATA_PREFIX = "_data."
DATA_DIR = "_data"
COMPONENTS_DIR = "_components"
RESERVED_PREFIXES = (".", "_")

BuildFilter = Callable[..., bool]
IgnoreFilter = Callable[[str], bool]
CopyPolicy = Callable[[str], Union[str, bool]]


class DataLoaderProtocol(Protocol):
    async def load(self, entry: Entry) -> dict: ...


class ComponentLoaderProtocol(Protocol):
    async def load(self, entry: Entry, data: dict) -> Registry: ...


@dataclass
class ComponentsOptions:
    variable: str = "comp"
    css_file: str = "/components.css"
    js_file: str = "/components.js"


@dataclass
class StaticPath:
    dest: Destination = None
    directory_only: bool = False


@dataclass
class BuildSession:
    """Accumulators owned by a single build() call."""

    pages: list[Page] = field(default_factory=list)
    static_files: list[StaticFile] = field(default_factory=list)
    data: dict[str, dict] = field(default_factory=dict)
    extra_code: ExtraCode = field(default_factory=dict)


class Source:
    """Walks the source tree and sorts every entry into pages and static files.

    Data, URL rules and components cascade from each directory to its
    children. Build filters are called as ``filter(entry)`` for directories
    and ``filter(entry, page)`` for pages; all of them must pass.
    """

    def __init__(
        self,
        fs: FS,
        formats: Formats,
        data_loader: DataLoaderProtocol,
        component_loader: ComponentLoaderProtocol,
        *,
        pretty_urls: bool = True,
        scoped_data: Optional[dict[str, dict]] = None,
        scoped_components: Optional[dict[str, Registry]] = None,
        virtual_pages: Optional[dict[str, list[dict]]] = None,
        components: Optional[ComponentsOptions] = None,
        copy_remaining_files: Optional[CopyPolicy] = None,
        date_resolvers: Optional[dict[str, DateResolver]] = None,
    ) -> None:
        self.fs = fs
        self.formats = formats
        self.data_loader = data_loader
        self.component_loader = component_loader
        self.pretty_urls = pretty_urls
        self.scoped_data = {normalize_path(k): v for k, v in (scoped_data or {}).items()}
        self.scoped_components = {
            normalize_path(k): v for k, v in (scoped_components or {}).items()
        }
        self.virtual_pages: dict[str, list[dict]] = {}
        for path, records in (virtual_pages or {}).items():
            for record in records:
                self.add_virtual_page(path, record)
        self.components = components or ComponentsOptions()
        self.copy_remaining_files = copy_remaining_files
        self.date_resolvers = date_resolvers
        self.ignored: set[str] = set()
        self.filters: list[IgnoreFilter] = []
        self.static_paths: dict[str, StaticPath] = {}
        self.session = BuildSession()

    def add_ignored_path(self, path: str) -> None:
        self.ignored.add(normalize_path(path))

    def add_ignore_filter(self, predicate: IgnoreFilter) -> None:
        self.filters.append(predicate)

    def add_static_path(self, from_: str, to: Destination = None) -> None:
        """Copy ``from_`` verbatim. A trailing slash matches directories only."""
        directory_only = from_.replace("\\", "/").endswith("/")
        dest = normalize_path(to) if isinstance(to, str) else to
        self.static_paths[normalize_path(from_)] = StaticPath(dest, directory_only)

    def add_virtual_page(self, path: str, record: dict) -> None:
        self.virtual_pages.setdefault(normalize_path(path), []).append(record)

    @property
    def data(self) -> dict[str, dict]:
        return self.session.data

    @property
    def root_data(self) -> Optional[dict]:
        return self.session.data.get("/")

    @property
    def extra_code(self) -> ExtraCode:
        return self.session.extra_code

    async def build(self, *filters: BuildFilter) -> tuple[list[Page], list[StaticFile]]:
        root = self.fs.entries.get("/")
        if root is None:
            raise SiteError("The source tree has no root entry")
        self.session = session = BuildSession()
        filters = tuple(_two_argument(predicate) for predicate in filters)
        await self._build(root, "", {}, {}, filters, session)
        return session.pages, session.static_files

    @staticmethod
    def _passes(filters: tuple[BuildFilter, ...], entry: Entry, page: Optional[Page] = None) -> bool:
        return all(predicate(entry, page) for predicate in filters)

    def get_components_extra_code(self) -> list[Page]:
        files = {"css": self.components.css_file, "js": self.components.js_file}
        pages = []
        for kind, path in files.items():
            code = self.session.extra_code.get(kind)
            if code:
                pages.append(Page.create(path, "\n".join(code.values())))
        return pages

    def is_ignored(self, entry: Entry) -> bool:
        if entry.name.startswith(RESERVED_PREFIXES):
            return True
        if entry.path in self.ignored:
            return True
        return any(predicate(entry.path) for predicate in self.filters)

    async def _build(
        self,
        directory: Entry,
        parent_path: str,
        parent_data: dict,
        parent_components: Registry,
        filters: tuple[BuildFilter, ...],
        session: BuildSession,
    ) -> None:
        if not self._passes(filters, directory):
            return

        name, date = parse_date_from_name(directory.name)

        declared: dict = {}
        for entry in directory.children.values():
            if (entry.type == "file" and entry.name.startswith(DATA_PREFIX)) or (
                entry.type == "directory" and entry.name == DATA_DIR
            ):
                declared.update(await self.data_loader.load(entry))

        dir_data = merge_data(
            parent_data,
            {"date": date} if date else {},
            self.scoped_data.get(directory.path, {}),
            declared,
        )
        slug = dir_data.pop("slug", None)
        path = join_path(parent_path or "/", str(slug) if slug else name)

        components = parent_components
        components_dir = directory.children.get(COMPONENTS_DIR)
        if components_dir is not None and components_dir.type != "directory":
            components_dir = None
        scoped_components = self.scoped_components.get(directory.path)
        if components_dir is not None or scoped_components:
            loaded = (
                await self.component_loader.load(components_dir, dir_data)
                if components_dir is not None
                else {}
            )
            components = merge_components(parent_components, scoped_components or {}, loaded)
        if components:
            dir_data[self.components.variable] = ComponentNamespace(components, session.extra_code)

        session.data[directory.path] = dir_data

        for record in self.virtual_pages.get(directory.path, []):
            self._add_virtual_page(record, directory, path, dir_data, session)

        for entry in directory.children.values():
            static = self.static_paths.get(entry.path)
            if static is not None and not (static.directory_only and entry.type == "file"):
                if entry.type == "directory" and not self._passes(filters, entry):
                    continue
                if entry.type == "file":
                    session.static_files.append(
                        StaticFile(entry, output_path(entry, path, static.dest))
                    )
                else:
                    session.static_files.extend(
                        self.iter_static_files(
                            entry,
                            static.dest if isinstance(static.dest, str) else join_path(path, entry.name),
                            static.dest if callable(static.dest) else None,
                        )
                    )
                continue

            if self.is_ignored(entry):
                continue

            if entry.type == "file":
                await self._add_file(entry, path, dir_data, filters, session)
            elif entry.type == "directory":
                await self._build(entry, path, dir_data, components, filters, session)

    async def _add_file(
        self,
        entry: Entry,
        path: str,
        dir_data: dict,
        filters: tuple[BuildFilter, ...],
        session: BuildSession,
    ) -> None:
        format = self.formats.search(entry.path)

        if format is None:
            if self.copy_remaining_files is not None:
                dest = self.copy_remaining_files(entry.path)
                if dest:
                    session.static_files.append(
                        StaticFile(entry, output_path(entry, path, dest if isinstance(dest, str) else None))
                    )
            return

        if format.copy:
            session.static_files.append(
                StaticFile(entry, output_path(entry, path, format.copy if callable(format.copy) else None))
            )
            return

        if not format.page_type:
            return

        loader = format.page_loader
        if loader is None:
            raise SiteError("The page format has no loader", path=entry.path, ext=format.ext)

        info = entry.get_info()
        slug, date = parse_date_from_name(entry.name)
        page = Page(
            PageSource(
                path=entry.path[: -len(format.ext)],
                ext=format.ext,
                asset=format.asset,
                slug=strip_extensions(slug),
                entry=entry,
                created=info.birthtime if info else None,
                last_modified=info.mtime if info else None,
            )
        )
        page.data = merge_data(
            dir_data,
            {"date": date} if date else {},
            self.scoped_data.get(entry.path, {}),
            await entry.get_content(loader),
        )

        url = resolve_url(page, self.pretty_urls, path)
        if url is False:
            return
        self._finalize(page, url, entry)

        if not self._passes(filters, entry, page):
            return
        session.pages.append(page)

    def _add_virtual_page(
        self,
        record: dict,
        directory: Entry,
        path: str,
        dir_data: dict,
        session: BuildSession,
    ) -> None:
        name = str(record.get("slug") or "index")
        page = Page(PageSource(path=join_path(directory.path, name), slug=strip_extensions(name)))
        page.data = merge_data(dir_data, {"date": now()}, record)

        url = resolve_url(page, self.pretty_urls, path)
        if url is False:
            return
        self._finalize(page, url, None)
        session.pages.append(page)

    def _finalize(self, page: Page, url: str, entry: Optional[Entry]) -> None:
        page.data["url"] = url
        page.data["date"] = resolve_date(page.data.get("date"), entry, self.date_resolvers)
        page.data["page"] = page

    def iter_static_files(
        self,
        directory: Entry,
        dest_path: str,
        dest_fn: Optional[Callable[[str], str]] = None,
    ) -> Iterator[StaticFile]:
        """Every copyable file below ``directory``, recursively, in tree order."""
        for entry in directory.children.values():
            if self.is_ignored(entry):
                continue
            if entry.type == "file":
                yield StaticFile(entry, output_path(entry, dest_path, dest_fn))
            elif entry.type == "directory":
                yield from self.iter_static_files(entry, join_path(dest_path, entry.name), dest_fn)


def _two_argument(predicate: BuildFilter) -> Callable[[Entry, Optional[Page]], bool]:
    """Adapt a build filter so it can always be called as ``predicate(entry, page)``.

    Filters taking only the entry are called without the page.
    """
    try:
        inspect.signature(predicate).bind(None, None)
    except TypeError:
        return lambda entry, page=None: predicate(entry)
    except ValueError:
        pass
    return predicate
