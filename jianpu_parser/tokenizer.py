"""Position-aware tokenizer for jianpu source text.

This module splits a source document into a metadata header and a notation
body and turns both into a flat token stream. Several characters only carry
notation meaning in context (``'`` and ``,`` after a note, ``b`` before one),
so classification looks at a short window of neighbouring characters.
"""

from __future__ import annotations

import logging
import re

from jianpu_parser.models import Token, TokenType

logger = logging.getLogger(__name__)

# Accepted header identifiers, compared case-insensitively for Latin keys
METADATA_KEYS: frozenset[str] = frozenset(
    {"标题", "调号", "拍号", "速度", "title", "key", "time", "tempo"}
)

# Header line pattern: identifier, ASCII or full-width colon, value
METADATA_RE = re.compile(r"^\s*([一-龥A-Za-z]+)\s*[:：]\s*(.+?)\s*$")

# Fence line around the free-text "other information" block
OTHER_FENCE = "---"

NOTE_DIGITS = "1234567"

# Characters that always map to the same token type
SIMPLE_TOKENS: dict[str, TokenType] = {
    "0": "REST",
    "-": "TIE",
    "|": "BARLINE",
    "(": "SLUR_START",
    ")": "SLUR_END",
    "/": "UNDERLINE",
    "#": "SHARP",
    "v": "BREATH",
    "V": "BREATH",
    "~": "TRILL",
    "^": "GRACE_PREFIX",
    ".": "DOT",
}

# Octave marks only count after a note digit or an underline
OCTAVE_TOKENS: dict[str, TokenType] = {
    "'": "OCTAVE_UP",
    ",": "OCTAVE_DOWN",
}


def split_lines(source: str) -> list[str]:
    """Split source into physical lines.

    Lines are split on ``\\n`` only, so that ``len(line) + 1`` advances the
    running offset by exactly one line. A trailing ``\\r`` is kept in the
    returned line; callers strip it where it matters.

    Examples
    --------
    >>> split_lines("a\\nb")
    ['a', 'b']
    >>> split_lines("")
    ['']
    """
    return source.split("\n")


def match_metadata(line: str) -> re.Match[str] | None:
    """Match a header line, returning None for unknown identifiers.

    Examples
    --------
    >>> match_metadata("标题：小星星").group(2)
    '小星星'
    >>> match_metadata("Tempo: 96").group(1)
    'Tempo'
    >>> match_metadata("1 2 3 |") is None
    True
    """
    match = METADATA_RE.match(line)
    if match is None:
        return None
    if match.group(1).lower() not in METADATA_KEYS:
        return None
    return match


def is_marker_line(stripped: str, marker: str) -> bool:
    """Check if a trimmed line is a ``Q`` / ``C`` marker line."""
    return stripped == marker or stripped.startswith(marker + " ")


def octave_mark_applies(content: str, index: int) -> bool:
    """Check if the octave mark at ``index`` follows a note or underline.

    Runs of the same mark are skipped so that ``1''`` raises two octaves.

    Examples
    --------
    >>> octave_mark_applies("1''", 2)
    True
    >>> octave_mark_applies("don't", 3)
    False
    >>> octave_mark_applies("5/,", 2)
    True
    """
    mark = content[index]
    look = index - 1
    while look >= 0 and content[look] == mark:
        look -= 1
    if look < 0:
        return False
    return content[look] in NOTE_DIGITS or content[look] == "/"


class _Tokenizer:
    """Single-use scanner holding the running position state."""

    def __init__(self, source: str) -> None:
        self.lines = split_lines(source)
        self.tokens: list[Token] = []
        self.line_offsets: list[int] = []
        offset = 0
        for line in self.lines:
            self.line_offsets.append(offset)
            offset += len(line) + 1

    def emit(
        self,
        type_: TokenType,
        value: str,
        line_index: int,
        column_index: int,
        has_space_before: bool = False,
    ) -> None:
        self.tokens.append(
            Token(
                type=type_,
                value=value,
                line=line_index + 1,
                column=column_index + 1,
                offset=self.line_offsets[line_index] + column_index,
                has_space_before=has_space_before,
            )
        )

    def run(self) -> list[Token]:
        body_start = self.scan_header()
        index = body_start
        while index < len(self.lines):
            line = self.lines[index].rstrip("\r")
            if line.strip() == OTHER_FENCE and self.has_closing_fence(index):
                index = self.scan_other_block(index)
                continue
            self.scan_body_line(index, line)
            index += 1

        eof_offset = len(self.lines[-1]) + self.line_offsets[-1]
        self.tokens.append(
            Token(type="EOF", value="", line=len(self.lines), column=1, offset=eof_offset)
        )
        return self.tokens

    def scan_header(self) -> int:
        """Emit metadata tokens and return the index of the first body line."""
        body_start = 0
        seen_metadata = False

        for index, raw in enumerate(self.lines):
            line = raw.rstrip("\r")
            if not line.strip():
                if seen_metadata:
                    return index + 1
                continue

            match = match_metadata(line)
            if match is None:
                break

            self.emit("METADATA_KEY", match.group(1), index, match.start(1))
            self.emit("METADATA_VALUE", match.group(2), index, match.start(2))
            seen_metadata = True
            body_start = index + 1

        return body_start

    def has_closing_fence(self, fence_index: int) -> bool:
        # Without a closing fence the line is three ties
        return any(
            line.strip() == OTHER_FENCE for line in self.lines[fence_index + 1 :]
        )

    def scan_other_block(self, fence_index: int) -> int:
        """Capture a ``---`` fenced free-text block; return the next line index."""
        inner: list[int] = []
        index = fence_index + 1
        while index < len(self.lines):
            if self.lines[index].strip() == OTHER_FENCE:
                break
            inner.append(index)
            index += 1

        fence_line = self.lines[fence_index]
        self.emit("METADATA_KEY", OTHER_FENCE, fence_index, fence_line.index(OTHER_FENCE))

        text = "\n".join(self.lines[i].rstrip("\r") for i in inner).strip()
        if text:
            first = next(i for i in inner if self.lines[i].strip())
            column = len(self.lines[first]) - len(self.lines[first].lstrip())
            self.emit("METADATA_VALUE", text, first, column)

        # Skip the closing fence as well
        return index + 1

    def scan_body_line(self, index: int, line: str) -> None:
        stripped = line.strip()
        start = 0

        if is_marker_line(stripped, "Q"):
            marker_column = line.index("Q")
            self.emit("MELODY_MARKER", "Q", index, marker_column)
            start = marker_column + 1
            while start < len(line) and line[start] in " \t":
                start += 1
            stripped = line[start:].strip()

        if is_marker_line(stripped, "C"):
            marker_column = line.index("C", start)
            self.emit("LYRICS_MARKER", "C", index, marker_column)
            text = line[marker_column + 1 :].strip()
            if text:
                self.emit("LYRICS_TEXT", text, index, line.index(text, marker_column + 1))
            self.emit("NEWLINE", "\n", index, len(self.lines[index]))
            return

        self.scan_notation(index, line, start)
        self.emit("NEWLINE", "\n", index, len(self.lines[index]))

    def scan_notation(self, index: int, line: str, start: int) -> None:
        content = line[start:]
        space_before = False

        for position, char in enumerate(content):
            column = start + position

            if char in " \t":
                space_before = True
                continue

            type_: TokenType | None
            if char in NOTE_DIGITS:
                type_ = "NOTE"
            elif char in SIMPLE_TOKENS:
                type_ = SIMPLE_TOKENS[char]
            elif char in OCTAVE_TOKENS:
                # Stray apostrophes and commas belong to prose, not notation
                type_ = OCTAVE_TOKENS[char] if octave_mark_applies(content, position) else None
            elif char == "b":
                following = content[position + 1] if position + 1 < len(content) else ""
                type_ = "FLAT" if following and following in NOTE_DIGITS else None
            else:
                type_ = "ERROR"

            if type_ is None:
                continue

            self.emit(type_, char, index, column, space_before)
            space_before = False


def tokenize(source: str) -> list[Token]:
    """Tokenize a jianpu source document.

    Never raises: characters that are not part of the notation become
    ``ERROR`` tokens and scanning continues.

    Parameters
    ----------
    source : str
        The full source text, header included.

    Returns
    -------
    list[Token]
        Tokens in source order, terminated by a single ``EOF`` token.

    Examples
    --------
    >>> [t.type for t in tokenize("5/ 6 |")][:4]
    ['NOTE', 'UNDERLINE', 'NOTE', 'BARLINE']
    >>> tokenize("1 2")[1].has_space_before
    True
    """
    tokens = _Tokenizer(source).run()
    logger.debug("tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens
