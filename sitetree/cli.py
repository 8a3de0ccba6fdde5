from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

from .config import load_config, resolve_list, resolve_scoped_data, resolve_static_paths
from .errors import SiteError
from .filesystem import FS, Page, StaticFile
from .loaders import ComponentLoader, DataLoader, default_formats
from .render import write_text
from .source import ComponentsOptions, Source
from .utils import iso_date, parse_bool


def create_source(args: argparse.Namespace) -> Source:
    src_dir = Path(args.src)
    if not src_dir.exists():
        print(f"Source directory not found: {src_dir}", file=sys.stderr)
        sys.exit(1)

    formats = default_formats()
    source = Source(
        FS(src_dir).update(),
        formats,
        DataLoader(formats),
        ComponentLoader(formats),
        pretty_urls=args.pretty_urls,
        scoped_data=args.scoped_data,
        components=ComponentsOptions(
            variable=args.components_variable,
            css_file=args.components_css,
            js_file=args.components_js,
        ),
        copy_remaining_files=(lambda path: True) if args.copy_remaining else None,
    )
    for path in args.ignore:
        source.add_ignored_path(path)
    for from_, to in args.static_paths.items():
        source.add_static_path(from_, to)
    return source


def build_manifest(pages: list[Page], static_files: list[StaticFile], extra: list[Page]) -> dict:
    return {
        "pages": [
            {
                "url": page.data["url"],
                "source": page.src.entry.path if page.src.entry else None,
                "date": iso_date(page.data["date"]),
            }
            for page in pages
        ],
        "static": [
            {"source": file.entry.path, "output": file.output_path} for file in static_files
        ],
        "extra": [page.data["url"] for page in extra],
    }


def build_site(args: argparse.Namespace) -> dict:
    source = create_source(args)
    pages, static_files = asyncio.run(source.build())
    extra = source.get_components_extra_code()

    if args.verbose:
        for page in pages:
            origin = page.src.entry.path if page.src.entry else "(virtual)"
            print(f"page   {page.data['url']} <- {origin}")
        for file in static_files:
            print(f"static {file.output_path} <- {file.entry.path}")
        for page in extra:
            print(f"extra  {page.data['url']}")

    manifest = build_manifest(pages, static_files, extra)
    if args.manifest:
        write_text(Path(args.manifest), json.dumps(manifest, indent=2, ensure_ascii=False))
    print(f"{len(pages)} pages, {len(static_files)} static files, {len(extra)} extra files.")
    return manifest


def main() -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args()
    config_path = Path(pre_args.config)
    config = load_config(config_path)

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    parser = argparse.ArgumentParser(description="Walk a site source tree into pages and static files.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--src", default=cfg_str("src", "src"), help="Source directory of the site.")
    parser.add_argument(
        "--pretty-urls",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("pretty_urls", True),
        help="Map pages to directory URLs with a trailing slash instead of .html files.",
    )
    parser.add_argument(
        "--copy-remaining",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("copy_remaining", False),
        help="Copy files with no known format as static files.",
    )
    parser.add_argument(
        "--components-variable",
        default=cfg_str("components_variable", "comp"),
        help="Data variable holding the components.",
    )
    parser.add_argument(
        "--components-css",
        default=cfg_str("components_css", "/components.css"),
        help="Output file for the CSS code of the components.",
    )
    parser.add_argument(
        "--components-js",
        default=cfg_str("components_js", "/components.js"),
        help="Output file for the JavaScript code of the components.",
    )
    parser.add_argument(
        "--manifest",
        default=cfg_str("manifest", ""),
        help="Write a JSON report of the build to this file.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("verbose", False),
        help="List every page and static file.",
    )
    args = parser.parse_args()
    args.ignore = resolve_list(config.get("ignore"))
    args.static_paths = resolve_static_paths(config.get("static"))
    args.scoped_data = resolve_scoped_data(config.get("scoped_data"), config_path)

    start = time.perf_counter()
    try:
        build_site(args)
    except SiteError as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")


if __name__ == "__main__":
    main()
