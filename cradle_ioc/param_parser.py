"""Reads the parameter names a producer declares, for CLASSIC injection."""

from __future__ import annotations

import inspect
import io
import logging
import textwrap
import tokenize
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from .errors import ParameterParseError

logger = logging.getLogger(__name__)

_IGNORED_TOKENS = frozenset({tokenize.COMMENT, tokenize.NL, tokenize.ENCODING})
_OPENING = frozenset("([{")
_CLOSING = frozenset(")]}")


@dataclass(frozen=True)
class Parameter:
    name: str
    optional: bool = False
    keyword_only: bool = False
    positional_only: bool = False


def _significant_tokens(source: str) -> Iterator[tokenize.TokenInfo]:
    readline = io.StringIO(textwrap.dedent(source)).readline
    try:
        for token in tokenize.generate_tokens(readline):
            if token.type not in _IGNORED_TOKENS:
                yield token
    except (tokenize.TokenError, SyntaxError) as ex:
        raise ParameterParseError(f"Could not tokenize producer source: {ex}") from ex


class _TokenStream:
    def __init__(self, source: str):
        self._tokens = _significant_tokens(source)
        self.current: tokenize.TokenInfo | None = None
        self.advance()

    def advance(self) -> tokenize.TokenInfo | None:
        self.current = next(self._tokens, None)
        return self.current

    def done(self) -> bool:
        return self.current is None or self.current.type == tokenize.ENDMARKER

    def is_op(self, value: str) -> bool:
        return self.current is not None and self.current.type == tokenize.OP and self.current.string == value

    def is_name(self, value: str | None = None) -> bool:
        if self.current is None or self.current.type != tokenize.NAME:
            return False
        return value is None or self.current.string == value

    def expect_op(self, value: str):
        if not self.is_op(value):
            raise self.unexpected()
        self.advance()

    def unexpected(self) -> ParameterParseError:
        if self.done():
            return ParameterParseError("Parsing parameter list, reached the end of the source unexpectedly")
        token = self.current
        return ParameterParseError(
            f"Parsing parameter list, did not expect {tokenize.tok_name[token.type]} token ({token.string!r})"
        )


def _skip_decorators(stream: _TokenStream):
    while stream.is_op("@"):
        while not stream.done() and stream.current.type != tokenize.NEWLINE:
            stream.advance()
        stream.advance()


def _skip_expression(stream: _TokenStream, closing: str, *, stop_at_equals: bool = False):
    depth = 0
    while not stream.done():
        token = stream.current
        if token.type == tokenize.OP:
            if depth == 0 and (
                token.string == "," or token.string == closing or (stop_at_equals and token.string == "=")
            ):
                return
            if token.string in _OPENING:
                depth += 1
            elif token.string in _CLOSING:
                depth -= 1
        elif token.type == tokenize.NAME and token.string == "lambda":
            # lambda parameters are separated by commas at this depth too
            stream.advance()
            _parse_params(stream, closing=":")
        stream.advance()

    raise stream.unexpected()


def _parse_params(stream: _TokenStream, closing: str) -> list[Parameter]:
    params: list[Parameter] = []
    keyword_only = False
    annotations_allowed = closing == ")"

    while not stream.is_op(closing):
        if stream.done():
            raise stream.unexpected()

        if stream.is_op("/"):
            params = [replace(p, positional_only=True) for p in params]
            stream.advance()
        elif stream.is_op("*") or stream.is_op("**"):
            keyword_only = True
            stream.advance()
            if stream.is_name():
                stream.advance()
                if annotations_allowed and stream.is_op(":"):
                    stream.advance()
                    _skip_expression(stream, closing)
        elif stream.is_name():
            name = stream.current.string
            optional = False
            stream.advance()
            if annotations_allowed and stream.is_op(":"):
                stream.advance()
                _skip_expression(stream, closing, stop_at_equals=True)
            if stream.is_op("="):
                optional = True
                stream.advance()
                _skip_expression(stream, closing)
            params.append(Parameter(name=name, optional=optional, keyword_only=keyword_only))
        else:
            raise stream.unexpected()

        if stream.is_op(","):
            stream.advance()
        elif not stream.is_op(closing):
            raise stream.unexpected()

    return params


def _parse_def(stream: _TokenStream) -> list[Parameter]:
    # current token is the function name
    stream.advance()
    stream.expect_op("(")
    return _parse_params(stream, closing=")")


def _parse_class_constructor(stream: _TokenStream) -> list[Parameter] | None:
    """
    Looks for ``def __init__`` declared directly in the class body. Only the
    first statement token of a body-level logical line is considered, so calls
    such as ``super().__init__(...)``, nested classes and other methods never
    match. When the body redefines ``__init__`` the last definition wins.
    """
    level = 0
    line_start = False
    constructor: list[Parameter] | None = None

    while not stream.done():
        token = stream.current
        if token.type == tokenize.INDENT:
            level += 1
            line_start = True
        elif token.type == tokenize.DEDENT:
            level -= 1
            line_start = True
            if level == 0:
                break
        elif token.type == tokenize.NEWLINE:
            line_start = True
        elif line_start and level == 1 and stream.is_name("async"):
            pass
        elif line_start and level == 1 and stream.is_name("def"):
            line_start = False
            stream.advance()
            if stream.is_name("__init__"):
                params = _parse_def(stream)
                constructor = params[1:]
        else:
            line_start = False
        stream.advance()

    return constructor


def _parse(source: str) -> list[Parameter] | None:
    stream = _TokenStream(source)
    _skip_decorators(stream)

    if stream.is_name("async"):
        stream.advance()

    if stream.is_name("def"):
        stream.advance()
        return _parse_def(stream)

    if stream.is_name("lambda"):
        stream.advance()
        return _parse_params(stream, closing=":")

    if stream.is_name("class"):
        return _parse_class_constructor(stream)

    raise stream.unexpected()


def parse_parameter_list(source: str) -> list[Parameter]:
    """
    Parses the declared parameters of a function, lambda or class from its source.

    Default values, annotations, comments and ``*args``/``**kwargs`` are skipped;
    parameters after ``*`` are flagged as keyword-only, parameters before ``/``
    as positional-only and parameters with a default as optional. For a class,
    the ``__init__`` declared in the class body is used without its ``self``
    parameter; a class that declares no ``__init__`` yields an empty list.

    Raises:
        ParameterParseError: the source is not a function, lambda or class.
    """
    return _parse(source) or []


def _try_get_source(subject: object) -> str | None:
    try:
        return inspect.getsource(subject)  # type: ignore
    except (OSError, TypeError):
        return None


def _from_signature(subject: Callable, skip_first: bool = False) -> list[Parameter]:
    try:
        signature = inspect.signature(subject)
    except (TypeError, ValueError):
        logger.debug("No signature available for %r, assuming it takes no parameters", subject)
        return []

    params = [
        Parameter(
            name=name,
            optional=param.default is not param.empty,
            keyword_only=param.kind is param.KEYWORD_ONLY,
            positional_only=param.kind is param.POSITIONAL_ONLY,
        )
        for name, param in signature.parameters.items()
        if param.kind not in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
    ]
    return params[1:] if skip_first else params


def _parse_function_source(fn: Callable, skip_first: bool) -> list[Parameter]:
    source = _try_get_source(fn)
    if source is None:
        return _from_signature(fn, skip_first=skip_first)

    try:
        params = parse_parameter_list(source)
    except ParameterParseError as ex:
        logger.warning("Falling back to the signature of %r: %s", fn, ex)
        # the signature of a bound method already omits the bound parameter
        return _from_signature(fn, skip_first=skip_first and not inspect.ismethod(fn))

    return params[1:] if skip_first else params


def _get_class_dependencies(cls: type) -> list[Parameter]:
    source = _try_get_source(cls)
    if source is not None:
        try:
            declared = _parse(source)
        except ParameterParseError as ex:
            logger.warning("Could not parse the source of %r, looking up its constructor instead: %s", cls, ex)
            declared = None
        if declared is not None:
            return declared

    for klass in cls.__mro__:
        init = vars(klass).get("__init__")
        if init is None:
            continue
        if klass is object:
            return []
        if not inspect.isfunction(init):
            return _from_signature(cls)
        return _parse_function_source(init, skip_first=True)

    return []


def get_dependencies(target: Callable) -> list[Parameter]:
    """
    Returns the parameters ``target`` should be called with under CLASSIC injection.

    Classes use the ``__init__`` declared in their own body, else the nearest
    ancestor's ``__init__``. Callables without retrievable source, lambdas included,
    are read from their signature instead.
    """
    if inspect.isclass(target):
        return _get_class_dependencies(target)

    if getattr(target, "__name__", None) == "<lambda>" or not (
        inspect.isfunction(target) or inspect.ismethod(target)
    ):
        return _from_signature(target)

    return _parse_function_source(target, skip_first=inspect.ismethod(target))
