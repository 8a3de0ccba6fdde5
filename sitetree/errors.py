from __future__ import annotations


class SiteError(Exception):
    """Fatal build error.

    Keyword arguments are kept on ``context`` (offending path, value, ...) and
    appended to the message so callers can print a precise diagnostic.
    """

    def __init__(self, message: str, **context: object) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ComponentNotFoundError(SiteError, AttributeError):
    def __init__(self, name: str) -> None:
        super().__init__(f'Component "{name}" not found', name=name)
        self.name = name
