from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import ComponentNotFoundError

ExtraCode = dict[str, dict[str, str]]


@dataclass
class Component:
    name: str
    render: Callable[[dict], str]
    css: Optional[str] = None
    js: Optional[str] = None


Registry = dict[str, Union[Component, "Registry"]]


def merge_components(parent: Registry, *registries: Registry) -> Registry:
    """Merge component registries, later ones winning.

    Namespaces present on both sides are merged recursively; any other
    collision is resolved by replacing the earlier value.
    """
    merged = dict(parent)
    for registry in registries:
        for key, value in (registry or {}).items():
            previous = merged.get(key)
            if isinstance(previous, dict) and isinstance(value, dict):
                merged[key] = merge_components(previous, value)
            else:
                merged[key] = value
    return merged


class BoundComponent:
    def __init__(self, component: Component) -> None:
        self.component = component

    def __repr__(self) -> str:
        return f"<component {self.component.name}>"

    def __call__(self, props: Optional[dict] = None, **kwargs: object) -> str:
        return self.component.render({**(props or {}), **kwargs})


class ComponentNamespace:
    """Lazy view over a component registry.

    ``ns.resolve("button")``, ``ns.button`` and ``ns["button"]`` all return the
    same memoized object: a :class:`BoundComponent` for a component or a child
    namespace for a nested registry. The first access of a component records
    its css/js into ``extra_code``.
    """

    def __init__(self, registry: Registry, extra_code: Optional[ExtraCode] = None) -> None:
        self._registry = registry
        self._extra_code = extra_code
        self._resolved: dict[str, Union[BoundComponent, ComponentNamespace]] = {}

    def __repr__(self) -> str:
        return f"ComponentNamespace({sorted(self._registry)})"

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._registry

    def __iter__(self):
        return iter(self._registry)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return self.resolve(name)

    def __getitem__(self, name: str):
        return self.resolve(name)

    def resolve(self, name: str) -> Union[BoundComponent, ComponentNamespace]:
        key = name.lower()
        if key in self._resolved:
            return self._resolved[key]

        value = self._registry.get(key)
        if value is None:
            raise ComponentNotFoundError(name)

        if isinstance(value, dict):
            resolved = ComponentNamespace(value, self._extra_code)
        else:
            self._collect(key, value)
            resolved = BoundComponent(value)
        self._resolved[key] = resolved
        return resolved

    def _collect(self, key: str, component: Component) -> None:
        if self._extra_code is None:
            return
        if component.css:
            self._extra_code.setdefault("css", {})[key] = component.css
        if component.js:
            self._extra_code.setdefault("js", {})[key] = component.js
