"""Registers the producers found in Python source files matching glob patterns."""

from __future__ import annotations

import glob
import hashlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Union

from .lifetime import Lifetime
from .module_filters import ModuleMember, is_registrable, matches_module_name
from .resolvers import ResolverOptionsLike, as_class, as_function, get_inline_options, merge_options

if TYPE_CHECKING:
    from .core import Container

logger = logging.getLogger(__name__)

GlobPattern = Union[str, tuple[str, ResolverOptionsLike]]


@dataclass(frozen=True)
class ModuleDescriptor:
    name: str
    path: Path
    options: ResolverOptionsLike = None


@dataclass
class LoadModulesResult:
    loaded_modules: list[ModuleDescriptor]


NameFormatter = Callable[[str, ModuleDescriptor], str]
ModuleImporter = Callable[[Path], Union[ModuleType, None]]


def list_modules(patterns: GlobPattern | Sequence[GlobPattern], *, cwd: str | Path | None = None) -> list[ModuleDescriptor]:
    """
    Lists the Python modules matching the glob patterns, relative to ``cwd``.
    A pattern can be paired with resolver options as a ``(pattern, options)`` tuple.
    Package markers and other dunder modules are skipped. A module matched by
    several patterns is listed once, with the options of the last one.
    """
    if isinstance(patterns, str) or (
        isinstance(patterns, tuple) and len(patterns) == 2 and not isinstance(patterns[1], str)
    ):
        patterns = [patterns]

    base = Path(cwd) if cwd is not None else Path.cwd()
    found: dict[Path, ModuleDescriptor] = {}

    for pattern in patterns:
        glob_pattern, options = (pattern, None) if isinstance(pattern, str) else pattern
        for match in sorted(glob.glob(glob_pattern, root_dir=base, recursive=True)):
            path = (base / match).resolve()
            if path.suffix != ".py" or path.name.startswith("__") or not path.is_file():
                continue
            found[path] = ModuleDescriptor(name=path.stem, path=path, options=options)

    return list(found.values())


def import_module_from_path(path: Path) -> ModuleType:
    """
    Imports the module at ``path`` and keeps it in ``sys.modules`` so the source of
    what it defines stays inspectable. Importing the same path again reuses the module.
    """
    path = Path(path).resolve()
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:10]
    module_name = f"_cradle_ioc_{path.stem}_{digest}"

    if (existing := sys.modules.get(module_name)) is not None:
        return existing

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import a module from {path}", path=str(path))

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[module_name]
        raise

    return module


def _register_member(
    container: Container,
    descriptor: ModuleDescriptor,
    member: ModuleMember,
    format_name: NameFormatter | None,
    resolver_options: ResolverOptionsLike,
):
    inline = get_inline_options(member.value)

    if inline is not None and inline.name is not None:
        name = inline.name
    elif matches_module_name(member):
        name = format_name(descriptor.name, descriptor) if format_name else descriptor.name
    else:
        name = member.name

    options = merge_options({"lifetime": Lifetime.TRANSIENT}, resolver_options, descriptor.options, inline)
    register = options.register or (as_class if inspect.isclass(member.value) else as_function)

    container.register(name, register(member.value, options))


def load_modules(
    container: Container,
    patterns: GlobPattern | Sequence[GlobPattern],
    *,
    cwd: str | Path | None = None,
    format_name: NameFormatter | None = None,
    resolver_options: ResolverOptionsLike = None,
    import_module: ModuleImporter | None = None,
) -> LoadModulesResult:
    """
    Imports every module matching ``patterns`` and registers its exports on ``container``.

    A module exports the public callable it defines under its own name (``UserService``
    or ``user_service`` in ``user_service.py``), registered under the module name passed
    through ``format_name``, plus every callable decorated with ``@resolver_options``,
    registered under its configured name or else its attribute name.

    Options are merged in order: transient lifetime, ``resolver_options``, the
    pattern's options, the export's inline options.
    """
    import_module = import_module or import_module_from_path
    modules = list_modules(patterns, cwd=cwd)

    for descriptor in modules:
        module = import_module(descriptor.path)
        if module is None:
            continue

        for attr_name, value in list(vars(module).items()):
            member = ModuleMember(name=attr_name, value=value, module=module, module_name=descriptor.name)
            if is_registrable(member):
                _register_member(container, descriptor, member, format_name, resolver_options)

    logger.debug("Loaded %d module(s) into container %s", len(modules), container.id)
    return LoadModulesResult(loaded_modules=modules)
