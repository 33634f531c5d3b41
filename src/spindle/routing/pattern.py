"""Route template compiler.

Turns a route template into an anchored regular expression with named
capture groups.  Grammar::

    template := segment*
    segment  := literal | optional | param
    optional := '[' segment* ']'
    param    := '{' name (':' regex)? '}'

Examples::

    "/items/{id}"          -> (?P<id>[^/]+) after a literal "/items/"
    "/items/{id:\\d+}"     -> (?P<id>\\d+)
    "/posts[/{id}]"        -> /posts(?:/(?P<id>[^/]+))?
    "/archive[/{y}[/{m}]]" -> optional sections nest

Brackets and braces inside ``{...}`` belong to the parameter expression,
so ``{id:[0-9]{2,4}}`` is a single parameter.  Literal text is escaped.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import TypeAlias

from spindle.errors import ConfigurationError

# One or more characters excluding the path separator
DEFAULT_PARAM_PATTERN = r"[^/]+"

_NAME_RE = re.compile(r"[A-Za-z_]\w*")


@dataclass(frozen=True, slots=True)
class Static:
    """Static text, matched verbatim."""

    text: str


@dataclass(frozen=True, slots=True)
class Param:
    """A named parameter, ``{name}`` or ``{name:pattern}``."""

    name: str
    pattern: str = DEFAULT_PARAM_PATTERN


@dataclass(frozen=True, slots=True)
class OptionalSection:
    """A ``[...]`` section matched zero or one time."""

    children: tuple["Node", ...]


Node: TypeAlias = Static | Param | OptionalSection


class _MissingParam(Exception):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A compiled route template. Pure and stateless."""

    template: str
    regex: re.Pattern[str]
    param_names: tuple[str, ...]
    nodes: tuple[Node, ...]

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path* start-to-end.

        Returns the captured parameters in declaration order, or ``None``.
        Parameters inside an optional section that did not participate
        in the match are left out.
        """
        m = self.regex.fullmatch(path)
        if m is None:
            return None
        params: dict[str, str] = {}
        for name in self.param_names:
            value = m.group(name)
            if value is not None:
                params[name] = value
        return params

    def build(self, params: Mapping[str, object]) -> str:
        """Build a concrete path from parameter values.

        Optional sections are emitted only when their parameters are
        supplied.  Raises ``ValueError`` when a required parameter is
        missing or a value cannot round-trip through the pattern.
        """
        values = {name: str(value) for name, value in params.items()}
        unknown = [name for name in values if name not in self.param_names]
        if unknown:
            msg = f"Unknown parameters for {self.template!r}: {', '.join(unknown)}"
            raise ValueError(msg)
        try:
            path = _render(self.nodes, values)
        except _MissingParam as exc:
            msg = f"Missing required parameter {exc.name!r} for {self.template!r}"
            raise ValueError(msg) from None
        if self.match(path) != values:
            msg = f"Parameters {values!r} cannot be expressed by {self.template!r}"
            raise ValueError(msg)
        return path


def parse_template(template: str) -> tuple[Node, ...]:
    """Parse a route template into a node tree.

    Raises ``ConfigurationError`` for unbalanced brackets or braces and
    for malformed parameter declarations.
    """
    stack: list[list[Node]] = [[]]
    literal: list[str] = []

    def flush() -> None:
        if literal:
            stack[-1].append(Static("".join(literal)))
            literal.clear()

    i = 0
    while i < len(template):
        ch = template[i]
        if ch == "{":
            flush()
            end = _find_param_end(template, i)
            stack[-1].append(_parse_param(template[i + 1 : end], template))
            i = end + 1
            continue
        if ch == "}":
            msg = f"Unmatched '}}' at position {i} in route template {template!r}"
            raise ConfigurationError(msg)
        if ch == "[":
            flush()
            stack.append([])
        elif ch == "]":
            if len(stack) == 1:
                msg = f"Unmatched ']' at position {i} in route template {template!r}"
                raise ConfigurationError(msg)
            flush()
            children = stack.pop()
            stack[-1].append(OptionalSection(tuple(children)))
        else:
            literal.append(ch)
        i += 1

    if len(stack) > 1:
        msg = f"Unclosed '[' in route template {template!r}"
        raise ConfigurationError(msg)
    flush()
    return tuple(stack[0])


def _find_param_end(template: str, start: int) -> int:
    """Return the index of the ``}`` closing the parameter opened at *start*."""
    depth = 0
    i = start
    while i < len(template):
        ch = template[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    msg = f"Unclosed '{{' at position {start} in route template {template!r}"
    raise ConfigurationError(msg)


def _parse_param(inner: str, template: str) -> Param:
    name, sep, pattern = inner.partition(":")
    if not _NAME_RE.fullmatch(name):
        msg = f"Invalid parameter name {name!r} in route template {template!r}"
        raise ConfigurationError(msg)
    if sep and not pattern:
        msg = f"Empty pattern for parameter {name!r} in route template {template!r}"
        raise ConfigurationError(msg)
    return Param(name, pattern) if sep else Param(name)


def _param_names(nodes: tuple[Node, ...]) -> list[str]:
    names: list[str] = []
    for node in nodes:
        match node:
            case Param(name=name):
                names.append(name)
            case OptionalSection(children=children):
                names.extend(_param_names(children))
    return names


def _to_regex(nodes: tuple[Node, ...]) -> str:
    parts: list[str] = []
    for node in nodes:
        match node:
            case Static(text=text):
                parts.append(re.escape(text))
            case Param(name=name, pattern=pattern):
                parts.append(f"(?P<{name}>{pattern})")
            case OptionalSection(children=children):
                parts.append(f"(?:{_to_regex(children)})?")
    return "".join(parts)


def _render(nodes: tuple[Node, ...], values: dict[str, str]) -> str:
    parts: list[str] = []
    for node in nodes:
        match node:
            case Static(text=text):
                parts.append(text)
            case Param(name=name):
                if name not in values:
                    raise _MissingParam(name)
                parts.append(values[name])
            case OptionalSection(children=children):
                if not any(name in values for name in _param_names(children)):
                    continue
                try:
                    parts.append(_render(children, values))
                except _MissingParam:
                    continue
    return "".join(parts)


@lru_cache(maxsize=1024)
def compile_template(template: str) -> CompiledPattern:
    """Compile a route template into an anchored matcher.

    Idempotent: the same template always yields an equivalent (cached)
    ``CompiledPattern``.
    """
    nodes = parse_template(template)
    names = _param_names(nodes)
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        msg = f"Duplicate parameter(s) {', '.join(duplicates)} in route template {template!r}"
        raise ConfigurationError(msg)
    try:
        regex = re.compile(_to_regex(nodes))
    except re.error as exc:
        msg = f"Invalid parameter pattern in route template {template!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return CompiledPattern(
        template=template,
        regex=regex,
        param_names=tuple(names),
        nodes=nodes,
    )
