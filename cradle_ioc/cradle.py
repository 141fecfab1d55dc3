from __future__ import annotations

from collections.abc import Hashable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from .errors import ReadOnlyCradleError
from .utils import uniq

if TYPE_CHECKING:
    from .core import Container


def _is_reserved(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


class Cradle:
    """
    Read-only view of a container handed to PROXY-injected producers, which pull
    their dependencies out of it by name::

        def make_service(cradle):
            return Service(cradle.repository, cradle["settings"])

    ``get``, ``has`` and ``keys`` are the explicit interface; attribute access,
    item access, ``in``, ``iter`` and ``len`` are shorthands over them. Dunder
    attributes are never resolved so generic tooling (``copy``, ``pickle``,
    ``inspect``, ``hasattr(cradle, "__await__")``) sees an ordinary object.
    """

    __slots__ = ("_container",)

    def __init__(self, container: Container):
        object.__setattr__(self, "_container", container)

    def get(self, name: Hashable) -> Any:
        return self._container.resolve(name)

    def has(self, name: Hashable) -> bool:
        return self._container.has_registration(name)

    def keys(self) -> list[Hashable]:
        """Registration names across the scope chain, from the root to this scope."""
        return list(self._container.registrations)

    def __getattr__(self, name: str) -> Any:
        if _is_reserved(name):
            raise AttributeError(name)
        return self.get(name)

    def __getitem__(self, name: Hashable) -> Any:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return self.has(name)  # type: ignore

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __bool__(self) -> bool:
        return True

    def __dir__(self):
        return [*super().__dir__(), *(k for k in self.keys() if isinstance(k, str))]

    def __setattr__(self, name: str, value: Any):
        raise ReadOnlyCradleError(name)

    def __delattr__(self, name: str):
        raise ReadOnlyCradleError(name)

    def __setitem__(self, name: Hashable, value: Any):
        raise ReadOnlyCradleError(name)

    def __delitem__(self, name: Hashable):
        raise ReadOnlyCradleError(name)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self) -> str:
        return f"<Cradle of {self._container!r}>"


class InjectorCradle(Cradle):
    """A cradle whose locally injected values shadow the container's registrations."""

    __slots__ = ("_locals",)

    def __init__(self, container: Container, injected: Mapping[Hashable, Any]):
        super().__init__(container)
        object.__setattr__(self, "_locals", dict(injected))

    def get(self, name: Hashable) -> Any:
        if name in self._locals:
            return self._locals[name]
        return super().get(name)

    def has(self, name: Hashable) -> bool:
        return name in self._locals or super().has(name)

    def keys(self) -> list[Hashable]:
        return uniq([*super().keys(), *self._locals])
