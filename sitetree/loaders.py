from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Any

import markdown
import yaml

from .components import Component, Registry
from .errors import SiteError
from .filesystem import Entry
from .formats import ASSET, PAGE, Format, Formats
from .render import render_template

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
COPY_EXTENSIONS = [".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".woff", ".woff2", ".pdf"]


def parse_front_matter(text: str, path: Path) -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return {}, clean_text

    try:
        meta = yaml.safe_load("\n".join(lines[1:end]))
    except yaml.YAMLError as exc:
        raise SiteError(f"Invalid front matter in {path}: {exc}", path=str(path)) from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise SiteError(f"Front matter must be a mapping: {path}", path=str(path))
    body = "\n".join(lines[end + 1 :])
    return meta, body


def extract_title(meta: dict, body: str) -> tuple[str | None, str]:
    if meta.get("title"):
        return meta["title"], body
    lines = body.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip() or None
            new_body = "\n".join(lines[i + 1 :]).lstrip()
            return title, new_body
        if stripped:
            break
    return None, body


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match and not list_match.group("indent"):
            if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                out.append("")
        out.append(line)
    return "\n".join(out)


def load_markdown(path: Path) -> dict:
    meta, body = parse_front_matter(path.read_text(encoding="utf-8"), path)
    title, body = extract_title(meta, body)
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
    content = md.convert(normalize_list_spacing(body))
    data = {**meta, "content": content, "toc": md.toc}
    if title:
        data["title"] = title
    return data


def load_html(path: Path) -> dict:
    meta, body = parse_front_matter(path.read_text(encoding="utf-8"), path)
    return {**meta, "content": body}


def load_text(path: Path) -> dict:
    return {"content": path.read_text(encoding="utf-8")}


def load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SiteError(f"Invalid JSON in data file {path}: {exc}", path=str(path)) from exc


def load_yaml(path: Path) -> Any:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SiteError(f"Invalid YAML in data file {path}: {exc}", path=str(path)) from exc
    return {} if data is None else data


def load_toml(path: Path) -> Any:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise SiteError(f"Invalid TOML in data file {path}: {exc}", path=str(path)) from exc


def default_formats() -> Formats:
    formats = Formats()
    formats.set(Format(".md", page_type=PAGE, loader=load_markdown))
    formats.set(Format(".html", page_type=PAGE, loader=load_html, component_loader=load_text))
    formats.set(Format(".css", page_type=ASSET, loader=load_text))
    formats.set(Format(".js", page_type=ASSET, loader=load_text))
    formats.set(Format(".json", data_loader=load_json))
    formats.set(Format(".yaml", data_loader=load_yaml))
    formats.set(Format(".yml", data_loader=load_yaml))
    formats.set(Format(".toml", data_loader=load_toml))
    for ext in COPY_EXTENSIONS:
        formats.set(Format(ext, copy=True))
    return formats


class DataLoader:
    """Loads ``_data.*`` files and ``_data/`` directories."""

    def __init__(self, formats: Formats) -> None:
        self.formats = formats

    async def load(self, entry: Entry) -> dict:
        if entry.type == "directory":
            return await self._load_directory(entry)
        format = self.formats.search(entry.path)
        if format is None or format.data_loader is None:
            return {}
        data = await entry.get_content(format.data_loader)
        if not isinstance(data, dict):
            raise SiteError("Data file must contain a mapping", path=entry.path)
        return data

    async def _load_directory(self, directory: Entry) -> dict:
        data: dict[str, Any] = {}
        for entry in directory.children.values():
            if entry.name.startswith((".", "_")):
                continue
            if entry.type == "directory":
                data[entry.name] = await self._load_directory(entry)
                continue
            format = self.formats.search(entry.path)
            if format is None or format.data_loader is None:
                continue
            data[entry.name[: -len(format.ext)]] = await entry.get_content(format.data_loader)
        return data


def _context_strings(values: dict) -> dict[str, str]:
    return {
        key: str(value)
        for key, value in values.items()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool)
    }


class ComponentLoader:
    """Builds a component registry from a ``_components/`` directory.

    Each template file becomes a component named after its stem (lower-cased);
    ``name.css`` and ``name.js`` next to it are kept as its extra code.
    Sub-directories become nested namespaces.
    """

    def __init__(self, formats: Formats) -> None:
        self.formats = formats

    async def load(self, directory: Entry, data: dict) -> Registry:
        registry: Registry = {}
        for entry in directory.children.values():
            if entry.name.startswith((".", "_")):
                continue
            if entry.type == "directory":
                registry[entry.name.lower()] = await self.load(entry, data)
                continue
            format = self.formats.search(entry.path)
            if format is None or format.component_loader is None:
                continue
            name = entry.name[: -len(format.ext)]
            template = (await entry.get_content(format.component_loader))["content"]
            registry[name.lower()] = Component(
                name=name.lower(),
                render=self._renderer(template, data),
                css=await self._sibling(directory, f"{name}.css"),
                js=await self._sibling(directory, f"{name}.js"),
            )
        return registry

    @staticmethod
    async def _sibling(directory: Entry, name: str) -> str | None:
        entry = directory.children.get(name)
        if entry is None or entry.type != "file":
            return None
        return (await entry.get_content(load_text))["content"]

    @staticmethod
    def _renderer(template: str, data: dict):
        context = _context_strings(data)

        def render(props: dict) -> str:
            return render_template(template, **{**context, **_context_strings(props)})

        return render
