from collections.abc import Hashable, Iterable, Mapping
from typing import Any, TypeVar

T = TypeVar("T")


def singleton(cls):
    """
    A singleton decorator. Every call on the decorated class returns the same
    instance, which makes it suitable for sentinels compared by identity.
    """

    cls.__INSTANCE__ = None

    def singleton_new(singleton_cls):
        if cls.__INSTANCE__ is None:
            cls.__INSTANCE__ = super(cls, cls).__new__(cls)
        return cls.__INSTANCE__

    cls.__new__ = singleton_new

    return cls


@singleton
class _empty:  # noqa: N801
    def __bool__(self):
        return False

    def __repr__(self):
        return "EMPTY"


EMPTY = _empty()


def uniq(items: Iterable[T]) -> list[T]:
    """Returns the items in their first-seen order without duplicates."""
    return list(dict.fromkeys(items))


def name_value_to_dict(name: Hashable | Mapping, value: Any = EMPTY) -> dict:
    """
    Creates a ``{name: value}`` dict unless ``name`` is already a mapping of names
    to values, which is returned as a plain dict.
    """
    if isinstance(name, Mapping):
        return dict(name)

    return {name: value}


def describe_name(name: Hashable) -> str:
    return name if isinstance(name, str) else str(name)
