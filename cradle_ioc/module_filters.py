from types import ModuleType
from typing import Any, NamedTuple

from theutilitybelt.functional.predicate import predicate

from .resolvers import get_inline_options


class ModuleMember(NamedTuple):
    name: str
    value: Any
    module: ModuleType
    module_name: str


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


def _is_public(member: ModuleMember):
    return not member.name.startswith("_")


def _is_callable(member: ModuleMember):
    return callable(member.value)


def _is_defined_in_module(member: ModuleMember):
    return getattr(member.value, "__module__", None) == member.module.__name__


def _has_inline_options(member: ModuleMember):
    return get_inline_options(member.value) is not None


def _matches_module_name(member: ModuleMember):
    """``user_service`` and ``UserService`` both match a ``user_service.py`` module."""
    return _normalize(member.name) == _normalize(member.module_name)


def _is_exported(member: ModuleMember):
    return _has_inline_options(member) or _matches_module_name(member)


is_public = predicate(_is_public)
is_callable = predicate(_is_callable)
is_defined_in_module = predicate(_is_defined_in_module)
has_inline_options = predicate(_has_inline_options)
matches_module_name = predicate(_matches_module_name)
is_exported = predicate(_is_exported)

is_registrable = is_public & is_callable & is_defined_in_module & is_exported
