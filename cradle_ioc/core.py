"""Dependency injection container with hierarchical scopes."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Hashable, Mapping, Sequence
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, NamedTuple
from uuid import uuid4

from .cradle import Cradle
from .errors import ContainerTypeError, DisposalError, RegistrationError, ResolutionError
from .lifetime import InjectionMode, Lifetime, is_lifetime_longer
from .loading import GlobPattern, NameFormatter
from .loading import load_modules as _load_modules
from .resolvers import Resolver, ResolverOptionsLike, as_class, as_function
from .utils import describe_name, name_value_to_dict

logger = logging.getLogger(__name__)


class Token:
    """A unique registration name. Two tokens are only equal if they are the same object."""

    __slots__ = ("description",)

    def __init__(self, description: str = ""):
        self.description = description

    def __repr__(self):
        return f"Token({self.description!r})"

    def __str__(self):
        return f"Token({self.description})"


class _PathEntry(NamedTuple):
    name: Hashable
    lifetime: Lifetime


# Names being resolved by the current call chain. Held per context so that
# threads and asyncio tasks resolving at the same time never share a path.
_resolution_path: ContextVar[tuple[_PathEntry, ...]] = ContextVar("cradle_ioc_resolution_path", default=())


def _names(path: Sequence[_PathEntry]) -> tuple[Hashable, ...]:
    return tuple(entry.name for entry in path)


@dataclass(kw_only=True)
class ContainerOptions:
    injection_mode: InjectionMode = InjectionMode.PROXY
    strict: bool = False
    import_module: Callable[[Path], ModuleType | None] | None = None


@dataclass
class CacheEntry:
    resolver: Resolver
    value: Any


class Container:
    """
    Maps names to resolvers and resolves them, caching values by lifetime.

    A container created with ``create_scope`` is a child of the container it was
    created from: it sees every registration of its ancestors unless it registers
    the same name itself. ``SCOPED`` values are cached on the container that
    resolved them, ``SINGLETON`` values on the root container.
    """

    def __init__(self, options: ContainerOptions | None = None, *, parent: Container | None = None):
        self.options = options if options is not None else ContainerOptions()
        self._id = str(uuid4())
        self._parent = parent
        self._root: Container = parent.root if parent is not None else self
        self._registrations: dict[Hashable, Resolver] = {}
        self._cache: dict[Hashable, CacheEntry] = {}
        self._cradle = Cradle(self)

    @property
    def id(self) -> str:
        return self._id

    @property
    def parent(self) -> Container | None:
        return self._parent

    @property
    def root(self) -> Container:
        return self._root

    @property
    def cradle(self) -> Cradle:
        return self._cradle

    @property
    def cache(self) -> dict[Hashable, CacheEntry]:
        """Values cached on this container only."""
        return self._cache

    @property
    def registrations(self) -> dict[Hashable, Resolver]:
        """
        The registrations visible from this container, merged from the root down.
        This is a snapshot; lookups always walk the scope chain.
        """
        inherited = self._parent.registrations if self._parent is not None else {}
        return {**inherited, **self._registrations}

    @property
    def resolution_path(self) -> tuple[Hashable, ...]:
        return _names(_resolution_path.get())

    def create_scope(self) -> Container:
        scope = Container(self.options, parent=self)
        logger.debug("Created scope %s from container %s", scope.id, self.id)
        return scope

    def register(self, name: Hashable | Mapping[Hashable, Resolver], resolver: Resolver | None = None) -> Container:
        """
        Registers ``resolver`` under ``name`` on this container, or every resolver of
        a ``{name: resolver}`` mapping. Existing local registrations are replaced.
        """
        for key, value in name_value_to_dict(name, resolver).items():
            ContainerTypeError.check(isinstance(value, Resolver), "register", "resolver", "a resolver", value)

            if self.options.strict and value.lifetime == Lifetime.SINGLETON and self._parent is not None:
                raise RegistrationError(key, "Cannot register a singleton on a scoped container.")

            self._registrations[key] = value
            logger.debug("Registered %r as %r on container %s", key, value, self.id)

        return self

    def get_registration(self, name: Hashable) -> Resolver | None:
        resolver = self._registrations.get(name)
        if resolver is not None:
            return resolver

        if self._parent is not None:
            return self._parent.get_registration(name)

        return None

    def has_registration(self, name: Hashable) -> bool:
        return self.get_registration(name) is not None

    def _check_lifetime_leak(
        self, name: Hashable, lifetime: Lifetime, resolver: Resolver, path: tuple[_PathEntry, ...]
    ):
        if not self.options.strict or resolver.is_leak_safe:
            return

        for entry in path:
            if is_lifetime_longer(entry.lifetime, lifetime):
                raise ResolutionError(
                    name,
                    _names(path),
                    f"Dependency '{describe_name(name)}' has a shorter lifetime than its ancestor: "
                    f"'{describe_name(entry.name)}'",
                )

    def resolve(self, name: Hashable, *, allow_unregistered: bool = False) -> Any:
        """
        Resolves the registration with the given name.

        Args:
            name: The registration name.
            allow_unregistered: Return ``None`` instead of raising when nothing is registered under ``name``.

        Raises:
            ResolutionError: ``name`` is not registered, depends on itself, or has an unknown lifetime.
        """
        path = _resolution_path.get()

        if any(entry.name == name for entry in path):
            raise ResolutionError(name, _names(path), "Cyclic dependencies detected.")

        resolver = self.get_registration(name)

        if resolver is None:
            if allow_unregistered:
                return None
            raise ResolutionError(name, _names(path))

        lifetime = resolver.lifetime
        if not isinstance(lifetime, Lifetime):
            raise ResolutionError(name, _names(path), f'Unknown lifetime "{lifetime}"')

        if lifetime == Lifetime.SINGLETON:
            cached = self._root._cache.get(name)
            if cached is not None:
                return cached.value
        elif lifetime == Lifetime.SCOPED:
            cached = self._cache.get(name)
            if cached is not None:
                self._check_lifetime_leak(name, lifetime, resolver, path)
                return cached.value

        self._check_lifetime_leak(name, lifetime, resolver, path)

        logger.debug("Resolving %r (%s) on container %s", name, lifetime.name, self.id)
        token = _resolution_path.set((*path, _PathEntry(name, lifetime)))
        try:
            if lifetime == Lifetime.SINGLETON:
                # strict containers build singletons from the root so they cannot capture scoped registrations
                value = resolver.resolve(self._root if self.options.strict else self)
                self._root._cache[name] = CacheEntry(resolver=resolver, value=value)
            elif lifetime == Lifetime.SCOPED:
                value = resolver.resolve(self)
                self._cache[name] = CacheEntry(resolver=resolver, value=value)
            else:
                value = resolver.resolve(self)
        finally:
            _resolution_path.reset(token)

        return value

    def build(self, target: Resolver | Callable, options: ResolverOptionsLike = None, **kwargs: Any) -> Any:
        """
        Builds ``target``, a resolver, class or function, against this container.
        Nothing is cached so any configured lifetime is ignored.
        """
        if isinstance(target, Resolver):
            return target.resolve(self)

        ContainerTypeError.check(target is not None, "build", "target", "a resolver, function or class", target)
        ContainerTypeError.check(callable(target), "build", "target", "a function or class", target)

        if inspect.isclass(target):
            resolver = as_class(target, options, **kwargs)
        else:
            resolver = as_function(target, options, **kwargs)

        return resolver.resolve(self)

    def load_modules(
        self,
        patterns: GlobPattern | Sequence[GlobPattern],
        *,
        cwd: str | Path | None = None,
        format_name: NameFormatter | None = None,
        resolver_options: ResolverOptionsLike = None,
    ) -> Container:
        _load_modules(
            self,
            patterns,
            cwd=cwd,
            format_name=format_name,
            resolver_options=resolver_options,
            import_module=self.options.import_module,
        )
        return self

    @staticmethod
    async def _dispose_entry(name: Hashable, entry: CacheEntry):
        try:
            result = entry.resolver.dispose(entry.value)  # type: ignore
            if inspect.isawaitable(result):
                await result
        except Exception as ex:
            logger.warning("Failed to dispose %r with exception %s", name, ex)
            raise

    async def dispose(self) -> None:
        """
        Clears this container's cache and calls the disposer of every cached value
        that has one. Parent and child containers are left alone.

        Raises:
            DisposalError: one or more disposers failed. Every disposer has run by then.
        """
        entries = list(self._cache.items())
        self._cache.clear()

        disposals = [
            self._dispose_entry(name, entry) for name, entry in entries if entry.resolver.dispose is not None
        ]
        logger.debug("Disposing %d cached value(s) of container %s", len(disposals), self.id)

        results = await asyncio.gather(*disposals, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            raise DisposalError(errors)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args, **kwargs):
        await self.dispose()

    def __repr__(self):
        kind = "scoped, " if self._parent is not None else ""
        return f"<Container ({kind}registrations: {len(self.registrations)})>"


def create_container(options: ContainerOptions | None = None, **kwargs: Any) -> Container:
    """
    Creates a root container.

    Args:
        options: The container options. Built from ``kwargs`` when omitted, e.g.
            ``create_container(injection_mode=InjectionMode.CLASSIC, strict=True)``.
    """
    return Container(options if options is not None else ContainerOptions(**kwargs))
