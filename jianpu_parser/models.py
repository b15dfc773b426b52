"""Data models for jianpu parsing.

This module defines the core data structures produced by the tokenizer and
the parser: tokens with source positions, score metadata, note elements,
measures, and the parse result with its diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

TokenType = Literal[
    "METADATA_KEY",
    "METADATA_VALUE",
    "NOTE",
    "REST",
    "TIE",
    "BARLINE",
    "OCTAVE_UP",
    "OCTAVE_DOWN",
    "UNDERLINE",
    "DOT",
    "SHARP",
    "FLAT",
    "SLUR_START",
    "SLUR_END",
    "BREATH",
    "GRACE_PREFIX",
    "TRILL",
    "MELODY_MARKER",
    "LYRICS_MARKER",
    "LYRICS_TEXT",
    "NEWLINE",
    "EOF",
    "ERROR",
]

KeyName = Literal[
    "C", "D", "E", "F", "G", "A", "B",
    "Db", "Eb", "Gb", "Ab", "Bb",
    "C#", "D#", "F#", "G#", "A#",
]

BaseDuration = Literal[1, 2, 4, 8, 16]
Accidental = Literal["sharp", "flat"]
GraceType = Literal["short", "long"]
TrillType = Literal["single", "double", "lower"]


@dataclass(frozen=True)
class Token:
    """A lexical token with its position in the source text.

    Parameters
    ----------
    type : TokenType
        The token classification.
    value : str
        The source text the token was produced from.
    line : int
        1-based line number.
    column : int
        1-based column within the line.
    offset : int
        0-based character offset into the whole source string.
    has_space_before : bool
        True if whitespace immediately preceded the token on its line.

    Examples
    --------
    >>> token = Token(type="NOTE", value="5", line=1, column=3, offset=2)
    >>> token.end
    3
    """

    type: TokenType
    value: str
    line: int
    column: int
    offset: int
    has_space_before: bool = False

    @property
    def end(self) -> int:
        """Exclusive end offset of the token in the source."""
        return self.offset + len(self.value)


@dataclass(frozen=True)
class TimeSignature:
    """Time signature: ``beats`` per measure, a ``beat_value`` note per beat."""

    beats: int = 4
    beat_value: int = 4


@dataclass(frozen=True)
class Metadata:
    """Score header information.

    Parameters
    ----------
    title : str | None
        Score title, if given.
    key : KeyName
        Key of the score (the pitch of scale degree 1).
    time_signature : TimeSignature
        Declared time signature used for beat validation.
    tempo : int
        Beats per minute.
    other : str | None
        Free-text block (composer, lyricist, remarks) from a ``---`` fence.
    """

    title: str | None = None
    key: KeyName = "C"
    time_signature: TimeSignature = field(default_factory=TimeSignature)
    tempo: int = 120
    other: str | None = None


@dataclass(frozen=True)
class Duration:
    """Note length as a fraction of a whole note plus augmentation dots.

    Parameters
    ----------
    base : BaseDuration
        Denominator of the whole-note fraction (4 = quarter, 8 = eighth).
    dots : int
        Number of augmentation dots (0-2).
    """

    base: BaseDuration = 4
    dots: int = 0


@dataclass(frozen=True)
class Note:
    """A sounding note.

    Parameters
    ----------
    pitch : int
        Scale degree 1-7.
    octave : int
        Octave offset from the middle octave (negative is lower).
    accidental : Accidental | None
        Sharp or flat, if marked.
    duration : Duration
        Resolved note length.
    dot : bool
        Whether an articulation dot was written.
    is_grace : bool
        True for ornamental grace notes, which take no beat of their own.
    grace_type : GraceType | None
        ``"long"`` (one underline) or ``"short"`` (two or more).
    trill_type : TrillType | None
        Trill ornament written before the note.
    beam_group : int | None
        Shared id for notes joined by one beam.
    slur_group : int | None
        Shared id for notes under one slur.
    has_space_before : bool
        Whether whitespace separated the note from the previous token.
    """

    pitch: int
    octave: int = 0
    accidental: Accidental | None = None
    duration: Duration = field(default_factory=Duration)
    dot: bool = False
    is_grace: bool = False
    grace_type: GraceType | None = None
    trill_type: TrillType | None = None
    beam_group: int | None = None
    slur_group: int | None = None
    has_space_before: bool = False


@dataclass(frozen=True)
class Rest:
    """A rest (``0``)."""

    duration: Duration = field(default_factory=Duration)
    has_space_before: bool = False


@dataclass(frozen=True)
class Tie:
    """A continuation (``-``) of the previous note, with its own duration share."""

    duration: Duration = field(default_factory=Duration)


@dataclass(frozen=True)
class Breath:
    """A breath mark (``v``); takes no time."""


NoteElement = Note | Rest | Tie | Breath


@dataclass(frozen=True)
class LyricsSyllable:
    """One lyric unit bound to one note.

    Parameters
    ----------
    text : str
        The syllable text (empty for placeholders).
    is_placeholder : bool
        True when the lyric line used ``_`` to skip a note.
    is_group : bool
        True when several characters were grouped with parentheses.
    """

    text: str
    is_placeholder: bool = False
    is_group: bool = False


@dataclass(frozen=True)
class MeasureLyrics:
    """Syllables attached to the notes of one measure, in note order."""

    syllables: tuple[LyricsSyllable, ...]


@dataclass(frozen=True)
class SourceRange:
    """Half-open ``[start, end)`` offset range into the source text."""

    start: int
    end: int


@dataclass(frozen=True)
class Measure:
    """A measure of note elements.

    Parameters
    ----------
    number : int
        1-based measure number; numbers are contiguous.
    notes : tuple[NoteElement, ...]
        Elements of the measure in source order.
    lyrics : MeasureLyrics | None
        Attached syllables, if any lyric was bound to this measure.
    source_range : SourceRange | None
        Source span of the measure, excluding surrounding barlines.
    """

    number: int
    notes: tuple[NoteElement, ...]
    lyrics: MeasureLyrics | None = None
    source_range: SourceRange | None = None


@dataclass(frozen=True)
class Score:
    """Complete parsed score.

    Parameters
    ----------
    metadata : Metadata
        Header information.
    measures : tuple[Measure, ...]
        All measures; never empty.
    """

    metadata: Metadata
    measures: tuple[Measure, ...]


@dataclass(frozen=True)
class SourcePosition:
    """1-based line/column plus 0-based absolute offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True)
class ParseError:
    """A diagnostic tied to a source range.

    ``position.offset`` and ``length`` describe a half-open range in the
    source text, suitable for inline editor highlighting.
    """

    message: str
    position: SourcePosition
    length: int = 1


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one ``parse`` call.

    ``score`` and ``errors`` are independent: a score may come with
    non-fatal diagnostics, and ``score`` is None only on fatal failure.
    """

    score: Score | None
    errors: tuple[ParseError, ...] = ()

    @property
    def ok(self) -> bool:
        """True when a score was produced without any diagnostics."""
        return self.score is not None and not self.errors
