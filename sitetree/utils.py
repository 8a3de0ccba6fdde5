from __future__ import annotations

import datetime as dt
import posixpath
import re

DATE_NAME_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d\d)-(?P<day>\d\d)"
    r"(?:-(?P<hour>\d\d)-(?P<minute>\d\d)(?:-(?P<second>\d\d))?)?"
    r"[_-](?P<rest>.*)$",
    re.DOTALL,
)
EXTENSION_RE = re.compile(r"\.\w+$")
EXTENSIONS_RE = re.compile(r"\.[\w.]+$")


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def iso_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _collapse(path: str) -> str:
    path = posixpath.normpath(path)
    # POSIX keeps a leading "//", site paths never do
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    return path


def normalize_path(path: str) -> str:
    """Canonical form of a site path: rooted at "/", no trailing slash."""
    path = path.replace("\\", "/")
    path = _collapse(posixpath.join("/", path))
    if path != "/":
        path = path.rstrip("/")
    return path


def join_path(*parts: str) -> str:
    """Join POSIX path segments, collapsing "." and "..".

    Later absolute segments do not reset the path, and a trailing slash on the
    last segment is kept, so ``join_path("/blog", "/")`` gives ``"/blog/"``.
    """
    parts = tuple(part for part in parts if part)
    if not parts:
        return "."
    joined = "/".join(parts)
    trailing = joined.endswith("/")
    path = _collapse(joined)
    if trailing and not path.endswith("/"):
        path += "/"
    return path


def get_extension(path: str) -> str:
    match = EXTENSION_RE.search(posixpath.basename(path))
    return match.group(0) if match else ""


def strip_extensions(name: str) -> str:
    return EXTENSIONS_RE.sub("", name)


def parse_date_from_name(name: str) -> tuple[str, dt.datetime | None]:
    """Split a leading ``YYYY-MM-DD[-hh-mm[-ss]]`` stamp off a file name.

    The stamp must be followed by ``_`` or ``-``. Returns the remaining name
    and the stamp as a UTC datetime, or the untouched name and ``None``.
    """
    match = DATE_NAME_RE.match(name)
    if not match:
        return name, None
    fields = match.groupdict()
    try:
        date = dt.datetime(
            int(fields["year"]),
            int(fields["month"]),
            int(fields["day"]),
            int(fields["hour"] or 0),
            int(fields["minute"] or 0),
            int(fields["second"] or 0),
            tzinfo=dt.timezone.utc,
        )
    except ValueError:
        return name, None
    return fields["rest"], date
