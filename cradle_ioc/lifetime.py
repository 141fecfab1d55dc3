from enum import Enum, IntEnum


class Lifetime(IntEnum):
    """
    Caching policy of a resolver. Members are ordered from the shortest to the
    longest lived so they can be compared directly.
    """

    TRANSIENT = 0
    """Resolved every time, never cached."""
    SCOPED = 1
    """Resolved once per container, cached on the container that resolved it."""
    SINGLETON = 2
    """Resolved once, cached on the root container."""


class InjectionMode(Enum):
    PROXY = "PROXY"
    """The producer receives the cradle and pulls its own dependencies by name."""
    CLASSIC = "CLASSIC"
    """The producer's parameter names are parsed and resolved as arguments."""


def is_lifetime_longer(a: Lifetime, b: Lifetime) -> bool:
    return a > b
