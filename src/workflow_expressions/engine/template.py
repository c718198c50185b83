"""Template parsing.

A template is literal text interleaved with ``{{ }}`` expressions:

    "Hello {{ $json \"User\" \"name\" }}, you have {{ $length items }} items"

Parsing happens in two stages:

1. ``segment_template`` splits the text into literal and expression segments.
   It is total: an unterminated ``{{`` is kept as literal text.
2. ``parse_template`` additionally parses every expression body into a small
   AST (Literal, PathReference, HelperCall). Malformed expression syntax raises
   TemplateSyntaxError here, before anything is evaluated.

Supported syntax inside braces:
    {{ $helper arg1 arg2 }}          - helper call
    {{ $helper (sub-call) "str" }}   - parenthesized sub-expression
    {{ users[0].email }}             - bare path against the root scope
    {{ "text" }} {{ 42 }} {{ true }} - literals (also false, null, undefined)
    {{! comment }} {{!-- comment --}}- renders nothing
    {{{ expression }}}               - same as {{ }} (no escaping is applied)
    \\{{                              - literal "{{"

Parsed templates are immutable and cached by source text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from .exceptions import TemplateSyntaxError
from .paths import parse_reference_path
from .registry import HELPER_NAME_PATTERN
from .values import UNDEFINED

OPEN = "{{"
_NUMBER_PATTERN = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_KEYWORDS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": UNDEFINED,
}
_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

# ===========================================================================
# AST
# ===========================================================================


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal string, number, boolean, null or undefined."""

    value: Any


@dataclass(frozen=True, slots=True)
class PathReference:
    """Bare path resolved against the snapshot root scope."""

    path: str
    parts: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class HelperCall:
    """Helper invocation with already-parsed arguments."""

    name: str
    args: tuple[Node, ...]


Node = Literal | PathReference | HelperCall


@dataclass(frozen=True, slots=True)
class TextSegment:
    text: str


@dataclass(frozen=True, slots=True)
class ExpressionSegment:
    """One ``{{ }}`` expression. ``node`` is None for an empty expression."""

    source: str
    position: int
    node: Node | None = None


Segment = TextSegment | ExpressionSegment


@dataclass(frozen=True, slots=True)
class Template:
    """Parsed template."""

    source: str
    segments: tuple[Segment, ...]

    @property
    def expressions(self) -> tuple[ExpressionSegment, ...]:
        return tuple(s for s in self.segments if isinstance(s, ExpressionSegment))

    @property
    def single_expression(self) -> ExpressionSegment | None:
        """
        The only expression when the template is exactly one expression.

        Whitespace-only literal text around it is ignored.
        """
        expressions = self.expressions
        if len(expressions) != 1:
            return None
        for segment in self.segments:
            if isinstance(segment, TextSegment) and segment.text.strip():
                return None
        return expressions[0]

    def helper_names(self) -> set[str]:
        """Names of all helpers invoked explicitly (arguments or parentheses)."""
        names: set[str] = set()
        for expression in self.expressions:
            if expression.node is not None:
                _collect_helper_names(expression.node, names)
        return names


def _collect_helper_names(node: Node, names: set[str]) -> None:
    if isinstance(node, HelperCall):
        names.add(node.name)
        for arg in node.args:
            _collect_helper_names(arg, names)


# ===========================================================================
# Segmenting
# ===========================================================================


def _find_closing(text: str, start: int, closer: str) -> int:
    """
    Find ``closer`` after ``start``, skipping quoted strings.

    Falls back to a plain search so that an unterminated string inside braces
    still produces an expression (and a syntax error when it is parsed).
    """
    quote: str | None = None
    i = start
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif text.startswith(closer, i):
            return i
        i += 1
    return text.find(closer, start)


def segment_template(text: str) -> list[TextSegment | tuple[str, int]]:
    """
    Split a template into literal text and raw expression bodies.

    Returns:
        List of TextSegment and ``(body, position)`` tuples, where position is
        the offset of the opening braces. Comments are dropped and adjacent
        literal text is merged.

    Examples:
        >>> segment_template("Hi {{ name }}!")
        [TextSegment(text='Hi '), (' name ', 3), TextSegment(text='!')]
        >>> segment_template("\\\\{{ raw }}")
        [TextSegment(text='{{ raw }}')]
    """
    result: list[TextSegment | tuple[str, int]] = []
    literal: list[str] = []

    def flush() -> None:
        merged = "".join(literal)
        literal.clear()
        if merged:
            result.append(TextSegment(merged))

    i = 0
    while i < len(text):
        j = text.find(OPEN, i)
        if j == -1:
            literal.append(text[i:])
            break

        if j > 0 and text[j - 1] == "\\":
            # Escaped braces render literally
            literal.append(text[i : j - 1])
            literal.append(OPEN)
            i = j + len(OPEN)
            continue

        literal.append(text[i:j])

        if text.startswith("{{!--", j):
            close = text.find("--}}", j + 5)
            if close == -1:
                literal.append(text[j:])
                break
            i = close + 4
            continue

        if text.startswith("{{!", j):
            close = text.find("}}", j + 3)
            if close == -1:
                literal.append(text[j:])
                break
            i = close + 2
            continue

        if text.startswith("{{{", j):
            body_start, closer = j + 3, "}}}"
        else:
            body_start, closer = j + 2, "}}"

        close = _find_closing(text, body_start, closer)
        if close == -1:
            # Unterminated expression stays literal
            literal.append(text[j:])
            break

        flush()
        result.append((text[body_start:close], j))
        i = close + len(closer)

    flush()
    return result


# ===========================================================================
# Tokenizing and parsing
# ===========================================================================


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str  # "(", ")", "string", "word"
    value: str
    position: int


def _read_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    chars: list[str] = []
    i = start + 1
    while i < len(source):
        char = source[i]
        if char == "\\" and i + 1 < len(source):
            escaped = source[i + 1]
            chars.append(_STRING_ESCAPES.get(escaped, escaped))
            i += 2
            continue
        if char == quote:
            return "".join(chars), i + 1
        chars.append(char)
        i += 1
    raise TemplateSyntaxError("Unterminated string literal", source, start)


def _read_word(source: str, start: int) -> tuple[str, int]:
    i = start
    while i < len(source):
        char = source[i]
        if char.isspace() or char in "()":
            break
        if char in "\"'":
            raise TemplateSyntaxError("Unexpected quote", source, i)
        if char == "[":
            # Bracket segments may contain quoted keys with spaces or parens
            close = _find_closing(source, i + 1, "]")
            if close == -1:
                raise TemplateSyntaxError("Unterminated bracket", source, i)
            i = close + 1
            continue
        i += 1
    return source[start:i], i


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    while i < len(source):
        char = source[i]
        if char.isspace():
            i += 1
        elif char in "()":
            tokens.append(_Token(char, char, i))
            i += 1
        elif char in "\"'":
            value, end = _read_string(source, i)
            tokens.append(_Token("string", value, i))
            i = end
        else:
            value, end = _read_word(source, i)
            tokens.append(_Token("word", value, i))
            i = end
    return tokens


class _Parser:
    """Recursive-descent parser over the tokens of one expression."""

    def __init__(self, source: str):
        self.source = source
        self.tokens = _tokenize(source)
        self.index = 0

    def error(self, message: str, position: int | None = None) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, self.source, position)

    def peek(self) -> _Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def next(self) -> _Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def parse(self) -> Node | None:
        if not self.tokens:
            return None

        head = self.tokens[0]
        if head.kind == "word" and HELPER_NAME_PATTERN.match(head.value):
            self.next()
            args = self.parse_arguments()
            if (closing := self.peek()) is not None:
                raise self.error("Unbalanced ')'", closing.position)
            if not args:
                # Lone $name: helper call or path, decided against the registry
                return PathReference(head.value, (head.value,))
            return HelperCall(head.value, tuple(args))

        node = self.parse_operand()
        trailing = self.peek()
        if trailing is not None:
            if trailing.kind == ")":
                raise self.error("Unbalanced ')'", trailing.position)
            head_text = self.source[head.position : trailing.position].strip()
            raise self.error(
                f"Unexpected argument after non-helper {head_text!r}", trailing.position
            )
        return node

    def parse_arguments(self) -> list[Node]:
        args: list[Node] = []
        while (token := self.peek()) is not None and token.kind != ")":
            args.append(self.parse_operand())
        return args

    def parse_operand(self) -> Node:
        token = self.next()
        if token.kind == "string":
            return Literal(token.value)
        if token.kind == ")":
            raise self.error("Unbalanced ')'", token.position)
        if token.kind == "(":
            return self.parse_subexpression(token)

        word = token.value
        if word in _KEYWORDS:
            return Literal(_KEYWORDS[word])
        if _NUMBER_PATTERN.match(word):
            return Literal(_parse_number(word))
        try:
            parts = parse_reference_path(word)
        except TemplateSyntaxError as e:
            raise self.error(f"Invalid path {word!r}", token.position) from e
        return PathReference(word, tuple(parts))

    def parse_subexpression(self, opening: _Token) -> HelperCall:
        head = self.peek()
        if head is None:
            raise self.error("Unbalanced '('", opening.position)
        if head.kind != "word" or not HELPER_NAME_PATTERN.match(head.value):
            raise self.error("Sub-expression must start with a helper name", head.position)
        self.next()
        args = self.parse_arguments()
        closing = self.peek()
        if closing is None:
            raise self.error("Unbalanced '('", opening.position)
        self.next()
        return HelperCall(head.value, tuple(args))


def _parse_number(word: str) -> int | float:
    if re.fullmatch(r"-?\d+", word):
        return int(word)
    return float(word)


def parse_expression(source: str) -> Node | None:
    """
    Parse one expression body (the text between the braces).

    Returns:
        AST node, or None for an empty expression

    Raises:
        TemplateSyntaxError: If the expression is malformed
    """
    return _Parser(source.strip()).parse()


@lru_cache(maxsize=256)
def parse_template(text: str) -> Template:
    """
    Parse a template into literal and expression segments.

    Args:
        text: Template text

    Returns:
        Immutable Template (cached by text)

    Raises:
        TemplateSyntaxError: If any expression is malformed
    """
    segments: list[Segment] = []
    for item in segment_template(text):
        if isinstance(item, TextSegment):
            segments.append(item)
        else:
            body, position = item
            try:
                node = parse_expression(body)
            except TemplateSyntaxError as e:
                raise TemplateSyntaxError(
                    e.message, e.source, e.position, template_position=position
                ) from e
            segments.append(ExpressionSegment(body.strip(), position, node))
    return Template(text, tuple(segments))
