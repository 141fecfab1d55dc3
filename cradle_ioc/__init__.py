"""Dependency injection container with lifetimes and hierarchical scopes."""

from .core import CacheEntry, Container, ContainerOptions, Token, create_container
from .cradle import Cradle, InjectorCradle
from .errors import (
    ContainerError,
    ContainerTypeError,
    DisposalError,
    ParameterParseError,
    ReadOnlyCradleError,
    RegistrationError,
    ResolutionError,
)
from .lifetime import InjectionMode, Lifetime
from .loading import LoadModulesResult, ModuleDescriptor, list_modules, load_modules
from .param_parser import Parameter, get_dependencies, parse_parameter_list
from .resolvers import (
    RESOLVER,
    AliasResolver,
    BuildResolver,
    ClassResolver,
    FunctionResolver,
    Resolver,
    ResolverOptions,
    ValueResolver,
    alias_to,
    as_class,
    as_function,
    as_value,
    resolver_options,
)

__all__ = [
    "RESOLVER",
    "AliasResolver",
    "BuildResolver",
    "CacheEntry",
    "ClassResolver",
    "Container",
    "ContainerError",
    "ContainerOptions",
    "ContainerTypeError",
    "Cradle",
    "DisposalError",
    "FunctionResolver",
    "InjectionMode",
    "InjectorCradle",
    "Lifetime",
    "LoadModulesResult",
    "ModuleDescriptor",
    "Parameter",
    "ParameterParseError",
    "ReadOnlyCradleError",
    "RegistrationError",
    "ResolutionError",
    "Resolver",
    "ResolverOptions",
    "Token",
    "ValueResolver",
    "alias_to",
    "as_class",
    "as_function",
    "as_value",
    "create_container",
    "get_dependencies",
    "list_modules",
    "load_modules",
    "parse_parameter_list",
    "resolver_options",
]
