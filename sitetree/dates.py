from __future__ import annotations

import datetime as dt
import subprocess
from pathlib import Path
from typing import Callable, Optional

from .errors import SiteError
from .filesystem import Entry

DateResolver = Callable[[Entry], Optional[dt.datetime]]


def now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def git_date(kind: str, file: Path) -> Optional[dt.datetime]:
    """Commit time of the first ("created") or last ("modified") change of a file."""
    if kind == "created":
        args = ["git", "log", "--diff-filter=A", "--follow", "-1", "--format=%at", "--", file.name]
    else:
        args = ["git", "log", "-1", "--format=%at", "--", file.name]
    try:
        completed = subprocess.run(
            args,
            cwd=str(file.parent),
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    value = completed.stdout.strip()
    if not value.isdigit():
        return None
    return dt.datetime.fromtimestamp(int(value), tz=dt.timezone.utc)


def git_last_modified(entry: Entry) -> Optional[dt.datetime]:
    info = entry.get_info()
    found = git_date("modified", entry.src) if entry.src else None
    return found or (info.mtime if info else None) or now()


def git_created(entry: Entry) -> Optional[dt.datetime]:
    info = entry.get_info()
    found = git_date("created", entry.src) if entry.src else None
    return found or (info.birthtime if info else None) or now()


DEFAULT_RESOLVERS: dict[str, DateResolver] = {
    "git last modified": git_last_modified,
    "git created": git_created,
}


def resolve_date(
    value: object,
    entry: Optional[Entry] = None,
    resolvers: Optional[dict[str, DateResolver]] = None,
) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time(), tzinfo=dt.timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)

    if isinstance(value, str):
        if resolvers is None:
            resolvers = DEFAULT_RESOLVERS
        resolver = resolvers.get(value.strip().lower())
        if resolver is not None and entry is not None:
            resolved = resolver(entry)
            if resolved is not None:
                return resolved
        try:
            parsed = dt.datetime.fromisoformat(value.strip())
        except ValueError:
            raise SiteError(
                f"Invalid date: {value}", path=entry.path if entry else None
            ) from None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=dt.timezone.utc)

    if value is not None:
        raise SiteError(f"Invalid date: {value!r}", path=entry.path if entry else None)

    info = entry.get_info() if entry is not None else None
    if info is not None:
        return info.birthtime or info.mtime or now()
    return now()
