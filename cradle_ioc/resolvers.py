"""Resolvers: the producer definitions a container registers under a name."""

from __future__ import annotations

import abc
import inspect
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Union

from theutilitybelt.functional.utils import constant

from .cradle import InjectorCradle
from .errors import ContainerTypeError
from .lifetime import InjectionMode, Lifetime
from .param_parser import Parameter, get_dependencies
from .utils import EMPTY

if TYPE_CHECKING:
    from .core import Container

RESOLVER = "__resolver_options__"
"""Attribute holding inline resolver configuration on a class or function."""

Injector = Callable[["Container"], Mapping[Hashable, Any]]
Disposer = Callable[[Any], Any]


@dataclass(kw_only=True)
class ResolverOptions:
    name: Hashable | None = None
    lifetime: Lifetime | None = None
    injection_mode: InjectionMode | None = None
    injector: Injector | None = None
    dispose: Disposer | None = None
    register: Callable[..., BuildResolver] | None = None

    def merge(self, other: ResolverOptionsLike) -> ResolverOptions:
        other = to_resolver_options(other)
        overrides = {f.name: getattr(other, f.name) for f in fields(other) if getattr(other, f.name) is not None}
        return replace(self, **overrides)


ResolverOptionsLike = Union[ResolverOptions, Mapping[str, Any], Lifetime, None]


def to_resolver_options(options: ResolverOptionsLike) -> ResolverOptions:
    if options is None:
        return ResolverOptions()
    if isinstance(options, ResolverOptions):
        return options
    if isinstance(options, Lifetime):
        return ResolverOptions(lifetime=options)
    if isinstance(options, Mapping):
        return ResolverOptions(**options)
    raise ContainerTypeError("to_resolver_options", "options", "resolver options, a mapping or a lifetime", options)


def merge_options(*options: ResolverOptionsLike) -> ResolverOptions:
    merged = ResolverOptions()
    for option in options:
        merged = merged.merge(option)
    return merged


def get_inline_options(target: Any) -> ResolverOptions | None:
    """Inline configuration declared on ``target`` itself, never inherited from a base class."""
    try:
        return vars(target).get(RESOLVER)
    except TypeError:
        return None


def resolver_options(**options: Any):
    """
    Attaches inline resolver configuration to a class or function. It is merged
    over the options given to ``as_class``/``as_function`` and picked up by
    ``load_modules``::

        @resolver_options(lifetime=Lifetime.SINGLETON, name="db")
        class Database: ...
    """
    settings = ResolverOptions(**options)

    def decorator(target):
        setattr(target, RESOLVER, settings)
        return target

    return decorator


class Resolver(abc.ABC):
    lifetime: Lifetime = Lifetime.TRANSIENT
    is_leak_safe: bool = False
    dispose: Disposer | None = None

    @abc.abstractmethod
    def resolve(self, container: Container) -> Any: ...


class ValueResolver(Resolver):
    is_leak_safe = True

    def __init__(self, value: Any):
        self.value = value
        self._produce = constant(value)

    def resolve(self, container: Container) -> Any:
        return self._produce(container)

    def __repr__(self):
        return f"ValueResolver({self.value!r})"


class AliasResolver(Resolver):
    # lifetime and leaks are the aliased registration's concern
    is_leak_safe = True

    def __init__(self, name: Hashable):
        self.alias_target = name

    def resolve(self, container: Container) -> Any:
        return container.resolve(self.alias_target)

    def __repr__(self):
        return f"AliasResolver({self.alias_target!r})"


def _resolve_parameter(container: Container, injected: Mapping[Hashable, Any] | None, param: Parameter) -> Any:
    if injected is not None and param.name in injected:
        return injected[param.name]
    if param.optional and not container.has_registration(param.name):
        return EMPTY
    return container.resolve(param.name)


class BuildResolver(Resolver):
    """
    A resolver that calls ``target`` to produce its value. The dependencies
    ``target`` declares are parsed once, here, and used whenever the resolver
    runs with CLASSIC injection.
    """

    def __init__(self, target: Callable, options: ResolverOptions):
        self.target = target
        self.lifetime = options.lifetime if options.lifetime is not None else Lifetime.TRANSIENT
        self.injection_mode = options.injection_mode
        self.injector = options.injector
        self.dispose = options.dispose
        self.dependencies: list[Parameter] = get_dependencies(target)

    def set_lifetime(self, lifetime: Lifetime):
        self.lifetime = lifetime
        return self

    def singleton(self):
        return self.set_lifetime(Lifetime.SINGLETON)

    def scoped(self):
        return self.set_lifetime(Lifetime.SCOPED)

    def transient(self):
        return self.set_lifetime(Lifetime.TRANSIENT)

    def set_injection_mode(self, mode: InjectionMode):
        self.injection_mode = mode
        return self

    def proxy(self):
        return self.set_injection_mode(InjectionMode.PROXY)

    def classic(self):
        return self.set_injection_mode(InjectionMode.CLASSIC)

    def inject(self, injector: Injector):
        self.injector = injector
        return self

    def disposer(self, dispose: Disposer):
        self.dispose = dispose
        return self

    def _default(self, name: str) -> Any:
        try:
            param = inspect.signature(self.target).parameters.get(name)
        except (TypeError, ValueError):
            return EMPTY
        if param is None or param.default is param.empty:
            return EMPTY
        return param.default

    def _fill_positional_gaps(self, container: Container, values: list[Any]):
        """
        Positional-only arguments cannot be passed by keyword, so an optional
        parameter left out before one of them is passed positionally: with its
        declared default, else resolved like a required parameter.
        """
        last = max(
            (i for i, (p, v) in enumerate(zip(self.dependencies, values)) if p.positional_only and v is not EMPTY),
            default=-1,
        )
        for index in range(last):
            if values[index] is EMPTY:
                param = self.dependencies[index]
                default = self._default(param.name)
                values[index] = default if default is not EMPTY else container.resolve(param.name)

    def _arguments(self, container: Container, injected: Mapping[Hashable, Any] | None):
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        # once an optional parameter is left to its default, the rest go by keyword
        by_keyword = False

        values = [_resolve_parameter(container, injected, param) for param in self.dependencies]
        self._fill_positional_gaps(container, values)

        for param, value in zip(self.dependencies, values):
            if value is EMPTY:
                by_keyword = True
            elif by_keyword or param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)

        return args, kwargs

    def resolve(self, container: Container) -> Any:
        mode = self.injection_mode or container.options.injection_mode or InjectionMode.PROXY
        injected = self.injector(container) if self.injector else None

        if mode is not InjectionMode.CLASSIC:
            cradle = InjectorCradle(container, injected) if injected is not None else container.cradle
            return self.target(cradle)

        args, kwargs = self._arguments(container, injected)
        return self.target(*args, **kwargs)

    def __repr__(self):
        name = getattr(self.target, "__qualname__", repr(self.target))
        lifetime = getattr(self.lifetime, "name", self.lifetime)
        return f"{type(self).__name__}({name}, lifetime={lifetime})"


class FunctionResolver(BuildResolver):
    pass


class ClassResolver(BuildResolver):
    pass


def as_value(value: Any) -> ValueResolver:
    """Resolves ``value`` as-is every time."""
    return ValueResolver(value)


def as_function(fn: Callable, options: ResolverOptionsLike = None, **kwargs: Any) -> FunctionResolver:
    """Resolves by calling ``fn``. Transient unless configured otherwise."""
    ContainerTypeError.check(callable(fn), "as_function", "fn", "a callable", fn)
    merged = merge_options({"lifetime": Lifetime.TRANSIENT}, options, kwargs, get_inline_options(fn))
    return FunctionResolver(fn, merged)


def as_class(cls: type, options: ResolverOptionsLike = None, **kwargs: Any) -> ClassResolver:
    """Resolves by constructing ``cls``. Transient unless configured otherwise."""
    ContainerTypeError.check(inspect.isclass(cls), "as_class", "cls", "a class", cls)
    merged = merge_options({"lifetime": Lifetime.TRANSIENT}, options, kwargs, get_inline_options(cls))
    return ClassResolver(cls, merged)


def alias_to(name: Hashable) -> AliasResolver:
    """Resolves whatever ``name`` resolves to in the resolving container."""
    return AliasResolver(name)
