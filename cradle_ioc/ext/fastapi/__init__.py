from .core import Resolve, add_container_to_app, get_container_from_app, get_scope

__all__ = ["Resolve", "add_container_to_app", "get_container_from_app", "get_scope"]
