"""Lexical and geometry primitives for the ``.md5mesh`` text grammar.

A :class:`Scanner` is a cursor over an immutable string. Every primitive either
consumes its construct and returns the parsed value, or raises
:class:`~md5mesh.errors.ParseError` without consuming anything useful; callers
never backtrack.
"""

from __future__ import annotations

import math
import re

from md5mesh.errors import ParseError

SPACE_CHARS = " \t"
COMMENT_START = "//"

U32_MAX = 2**32 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1

_DIGITS = re.compile(r"[0-9]+")
_FLOAT = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_EXCERPT_LEN = 24


class Scanner:
    """Read cursor over the full text of one document."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    # ------------------------------------------------------------------
    # Position / error reporting
    # ------------------------------------------------------------------

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def location(self, offset: int | None = None) -> tuple[int, int]:
        """Return the 1-based (line, column) of ``offset`` (default: cursor)."""
        if offset is None:
            offset = self.pos
        prefix = self.text[:offset]
        line = len(_LINE_BREAK.findall(prefix)) + 1
        last_break = max(prefix.rfind("\n"), prefix.rfind("\r"))
        return line, offset - last_break

    def error(self, expected: str, offset: int | None = None) -> ParseError:
        """Build a ParseError for ``expected`` at ``offset`` (default: cursor)."""
        if offset is None:
            offset = self.pos
        line, column = self.location(offset)
        rest = self.text[offset : offset + _EXCERPT_LEN]
        rest = _LINE_BREAK.split(rest, maxsplit=1)[0]
        if offset >= len(self.text):
            found = "end of input"
        elif not rest:
            found = "end of line"
        else:
            found = repr(rest)
        return ParseError(
            f"line {line}, column {column}: expected {expected}, found {found}",
            expected=expected,
            offset=offset,
            line=line,
            column=column,
        )

    # ------------------------------------------------------------------
    # Whitespace, comments, line structure
    # ------------------------------------------------------------------

    def skip_space(self) -> None:
        """Consume zero or more spaces/tabs. Never crosses a line break."""
        text = self.text
        pos = self.pos
        while pos < len(text) and text[pos] in SPACE_CHARS:
            pos += 1
        self.pos = pos

    def space(self) -> None:
        """Consume a mandatory token separator (one or more spaces/tabs)."""
        start = self.pos
        self.skip_space()
        if self.pos == start:
            raise self.error("whitespace")

    def _skip_comment(self) -> None:
        if self.text.startswith(COMMENT_START, self.pos):
            match = _LINE_BREAK.search(self.text, self.pos)
            self.pos = match.start() if match else len(self.text)

    def _newline(self) -> bool:
        match = _LINE_BREAK.match(self.text, self.pos)
        if match is None:
            return False
        self.pos = match.end()
        return True

    def end_of_line(self) -> None:
        """Skip trailing space and an optional comment, then one line terminator.

        End of input also terminates the final line.
        """
        self.skip_space()
        self._skip_comment()
        if self._newline() or self.at_end():
            return
        raise self.error("end of line")

    def blank_line(self) -> bool:
        """Consume one blank or comment-only line if present."""
        start = self.pos
        self.skip_space()
        self._skip_comment()
        if self._newline():
            return True
        self.pos = start
        return False

    def skip_blank_lines(self) -> None:
        while self.blank_line():
            pass

    def skip_trailing_space(self) -> None:
        """Consume blank/comment lines and any spaces left before end of input."""
        self.skip_blank_lines()
        start = self.pos
        self.skip_space()
        self._skip_comment()
        if not self.at_end():
            self.pos = start

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def peek(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def tag(self, literal: str) -> None:
        """Consume the exact ``literal`` or fail naming it."""
        if not self.peek(literal):
            raise self.error(repr(literal))
        self.pos += len(literal)

    def quoted_string(self) -> str:
        """Consume a ``"``-delimited string. No escape sequences."""
        start = self.pos
        if not self.peek('"'):
            raise self.error("quoted string")
        end = self.text.find('"', start + 1)
        if end == -1:
            raise self.error("closing '\"'", offset=len(self.text))
        self.pos = end + 1
        return self.text[start + 1 : end]

    def _digits(self) -> int:
        match = _DIGITS.match(self.text, self.pos)
        if match is None:
            raise self.error("digits")
        self.pos = match.end()
        return int(match.group())

    def _minus(self) -> bool:
        if self.peek("-"):
            self.pos += 1
            return True
        return False

    def unsigned_integer(self) -> int:
        """Consume a 32-bit unsigned decimal integer."""
        start = self.pos
        if _DIGITS.match(self.text, start) is None:
            raise self.error("unsigned integer")
        value = self._digits()
        if value > U32_MAX:
            raise self.error(f"unsigned integer in range 0..{U32_MAX}", offset=start)
        return value

    def signed_integer(self) -> int:
        """Consume an optional ``-`` then a magnitude, as a 32-bit signed integer."""
        start = self.pos
        negative = self._minus()
        if _DIGITS.match(self.text, self.pos) is None:
            raise self.error("integer")
        magnitude = self._digits()
        value = -magnitude if negative else magnitude
        if not I32_MIN <= value <= I32_MAX:
            raise self.error(f"integer in range {I32_MIN}..{I32_MAX}", offset=start)
        return value

    def signed_float(self) -> float:
        """Consume an optional ``-`` then an unsigned float literal."""
        start = self.pos
        negative = self._minus()
        match = _FLOAT.match(self.text, self.pos)
        if match is None:
            raise self.error("number")
        self.pos = match.end()
        magnitude = float(match.group())
        if not math.isfinite(magnitude):
            raise self.error("finite number", offset=start)
        return -magnitude if negative else magnitude

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def vector(self, arity: int) -> tuple[float, ...]:
        """Consume ``( f f ... f )`` with exactly ``arity`` components."""
        self.tag("(")
        self.skip_space()
        values = [self.signed_float()]
        for _ in range(arity - 1):
            self.space()
            values.append(self.signed_float())
        self.skip_space()
        self.tag(")")
        return tuple(values)

    def vector2(self) -> tuple[float, float]:
        u, v = self.vector(2)
        return (u, v)

    def vector3(self) -> tuple[float, float, float]:
        x, y, z = self.vector(3)
        return (x, y, z)
