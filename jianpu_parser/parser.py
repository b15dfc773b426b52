"""Main jianpu parser orchestration.

This module resolves the token stream into measures of note elements and
provides the ``parse()`` entry point that runs the full pipeline: tokenize,
parse metadata and body, group beams and slurs, bind lyrics, and validate
beat counts.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from jianpu_parser.grouping import assign_beam_groups, assign_slur_groups
from jianpu_parser.lyrics import associate_lyrics
from jianpu_parser.models import (
    Accidental,
    BaseDuration,
    Breath,
    Duration,
    GraceType,
    Measure,
    Metadata,
    Note,
    NoteElement,
    ParseError,
    ParseResult,
    Rest,
    Score,
    SourcePosition,
    SourceRange,
    Tie,
    TimeSignature,
    Token,
    TokenType,
    TrillType,
)
from jianpu_parser.pitch import is_key_name
from jianpu_parser.tokenizer import OTHER_FENCE, tokenize
from jianpu_parser.validation import validate_measure_beats

logger = logging.getLogger(__name__)

DEFAULT_METADATA = Metadata()

# Header identifier -> Metadata field
METADATA_ALIASES: dict[str, str] = {
    "标题": "title",
    "title": "title",
    "调号": "key",
    "key": "key",
    "拍号": "time",
    "time": "time",
    "速度": "tempo",
    "tempo": "tempo",
    OTHER_FENCE: "other",
}

VALID_BEAT_VALUES = (1, 2, 4, 8, 16)

TIME_SIGNATURE_RE = re.compile(r"^(\d+)\s*/\s*(\d+)$")
TEMPO_RE = re.compile(r"^(\d+)")

# Tokens that never reach the note parser
NON_BODY_TYPES: frozenset[TokenType] = frozenset(
    {
        "METADATA_KEY",
        "METADATA_VALUE",
        "NEWLINE",
        "EOF",
        "MELODY_MARKER",
        "LYRICS_MARKER",
        "LYRICS_TEXT",
    }
)

LYRIC_TYPES: frozenset[TokenType] = frozenset({"LYRICS_MARKER", "LYRICS_TEXT"})

OCTAVE_TYPES: frozenset[TokenType] = frozenset({"OCTAVE_UP", "OCTAVE_DOWN"})
ACCIDENTAL_TYPES: frozenset[TokenType] = frozenset({"SHARP", "FLAT"})

# Token types that end the backward accidental scan
NOTE_BOUNDARY_TYPES: frozenset[TokenType] = frozenset({"BARLINE", "NOTE", "REST"})


def error_at(token: Token, message: str, length: int = 1) -> ParseError:
    """Build a diagnostic positioned on a token."""
    return ParseError(
        message=message,
        position=SourcePosition(line=token.line, column=token.column, offset=token.offset),
        length=length,
    )


def body_tokens(tokens: list[Token]) -> list[Token]:
    """Drop header, line-structure and lyric tokens, keeping notation tokens."""
    return [t for t in tokens if t.type not in NON_BODY_TYPES]


def lyric_tokens(tokens: list[Token]) -> list[Token]:
    """Keep only ``LYRICS_MARKER`` / ``LYRICS_TEXT`` tokens, in order."""
    return [t for t in tokens if t.type in LYRIC_TYPES]


def parse_metadata(tokens: list[Token]) -> tuple[Metadata, list[ParseError]]:
    """Build Metadata from ``METADATA_KEY`` / ``METADATA_VALUE`` pairs.

    Unknown or malformed values keep the default and produce a diagnostic.

    Parameters
    ----------
    tokens : list[Token]
        The full token stream.

    Returns
    -------
    tuple[Metadata, list[ParseError]]
        The resolved metadata and any value diagnostics.

    Examples
    --------
    >>> metadata, errors = parse_metadata(tokenize("拍号: 3/4\\n速度: 90\\n\\n1 |"))
    >>> metadata.time_signature.beats, metadata.tempo
    (3, 90)
    >>> errors
    []
    """
    metadata = DEFAULT_METADATA
    errors: list[ParseError] = []

    for key_token, value_token in zip(tokens, tokens[1:]):
        if key_token.type != "METADATA_KEY" or value_token.type != "METADATA_VALUE":
            continue

        name = METADATA_ALIASES.get(key_token.value.lower())
        value = value_token.value

        if name == "title":
            metadata = replace(metadata, title=value)
        elif name == "other":
            metadata = replace(metadata, other=value)
        elif name == "key":
            if is_key_name(value):
                metadata = replace(metadata, key=value)
            else:
                errors.append(error_at(value_token, f"unknown key: {value}", len(value)))
        elif name == "time":
            time_signature = parse_time_signature(value)
            if time_signature is not None:
                metadata = replace(metadata, time_signature=time_signature)
            else:
                errors.append(
                    error_at(value_token, f"invalid time signature: {value}", len(value))
                )
        elif name == "tempo":
            match = TEMPO_RE.match(value)
            tempo = int(match.group(1)) if match else 0
            if tempo > 0:
                metadata = replace(metadata, tempo=tempo)
            else:
                errors.append(error_at(value_token, f"invalid tempo: {value}", len(value)))

    return metadata, errors


def parse_time_signature(value: str) -> TimeSignature | None:
    """Parse ``"<beats>/<beat value>"``, returning None when malformed.

    Examples
    --------
    >>> parse_time_signature("6/8")
    TimeSignature(beats=6, beat_value=8)
    >>> parse_time_signature("4/3") is None
    True
    """
    match = TIME_SIGNATURE_RE.match(value)
    if match is None:
        return None
    beats, beat_value = int(match.group(1)), int(match.group(2))
    if beats < 1 or beat_value not in VALID_BEAT_VALUES:
        return None
    return TimeSignature(beats=beats, beat_value=beat_value)


def consume_underlines(tokens: list[Token], start: int) -> tuple[BaseDuration, int]:
    """Consume a run of underlines and return ``(base, next_index)``.

    No underline is a quarter note (4), one is an eighth (8), two or more
    a sixteenth (16).
    """
    i = start
    while i < len(tokens) and tokens[i].type == "UNDERLINE":
        i += 1

    count = i - start
    base: BaseDuration = 4
    if count == 1:
        base = 8
    elif count >= 2:
        base = 16
    return base, i


def consume_suffix_marks(tokens: list[Token], start: int) -> tuple[int, bool, int]:
    """Consume octave marks and dots; return ``(octave_delta, dotted, next_index)``."""
    i = start
    octave = 0
    dotted = False
    while i < len(tokens):
        kind = tokens[i].type
        if kind == "OCTAVE_UP":
            octave += 1
        elif kind == "OCTAVE_DOWN":
            octave -= 1
        elif kind == "DOT":
            dotted = True
        else:
            break
        i += 1
    return octave, dotted, i


def find_accidental(tokens: list[Token], note_index: int) -> Accidental | None:
    """Scan back from a note to the previous note, rest or barline for ``#``/``b``."""
    i = note_index - 1
    while i >= 0:
        kind = tokens[i].type
        if kind == "SHARP":
            return "sharp"
        if kind == "FLAT":
            return "flat"
        if kind in NOTE_BOUNDARY_TYPES:
            return None
        i -= 1
    return None


def parse_note(tokens: list[Token], start: int) -> tuple[Note, int]:
    """Parse the note at ``start`` together with its modifiers.

    Octave marks and the articulation dot may appear before or after the
    duration underlines (``5,/`` and ``5/,``; ``6./`` and ``6/.``).

    Parameters
    ----------
    tokens : list[Token]
        Body tokens.
    start : int
        Index of a ``NOTE`` token.

    Returns
    -------
    tuple[Note, int]
        The note and the index of the first token after it.
    """
    token = tokens[start]
    accidental = find_accidental(tokens, start)

    octave_before, dot_before, i = consume_suffix_marks(tokens, start + 1)
    base, i = consume_underlines(tokens, i)
    octave_after, dot_after, i = consume_suffix_marks(tokens, i)

    dot = dot_before or dot_after
    note = Note(
        pitch=int(token.value),
        octave=octave_before + octave_after,
        accidental=accidental,
        duration=Duration(base=base, dots=1 if dot else 0),
        dot=dot,
        has_space_before=token.has_space_before,
    )
    return note, i


def trill_type_before(tokens: list[Token], note_index: int) -> TrillType | None:
    """Classify the trill marks written before a note.

    Walks back over octave marks, accidentals, dots and ``~``. A dot between
    the ``~`` run and the note (``~.5``) marks a lower trill; otherwise one
    ``~`` is a single trill and two or more a double trill.

    Examples
    --------
    >>> tokens = body_tokens(tokenize("~~5"))
    >>> trill_type_before(tokens, 2)
    'double'
    >>> trill_type_before(body_tokens(tokenize("~.5")), 2)
    'lower'
    """
    trills = 0
    dot_before_trill = False
    i = note_index - 1

    while i >= 0:
        kind = tokens[i].type
        if kind == "DOT":
            if trills == 0:
                dot_before_trill = True
        elif kind == "TRILL":
            trills += 1
        elif kind not in OCTAVE_TYPES and kind not in ACCIDENTAL_TYPES:
            break
        i -= 1

    if trills == 0:
        return None
    if dot_before_trill:
        return "lower"
    return "single" if trills == 1 else "double"


def parse_grace(
    tokens: list[Token], start: int, errors: list[ParseError]
) -> tuple[Note | None, int]:
    """Parse a ``^`` grace prefix and the note it decorates.

    Returns ``(None, start + 1)`` when no note follows the prefix.
    """
    prefix = tokens[start]
    note_index = start + 1
    while note_index < len(tokens) and (
        tokens[note_index].type in OCTAVE_TYPES or tokens[note_index].type in ACCIDENTAL_TYPES
    ):
        note_index += 1

    if note_index >= len(tokens) or tokens[note_index].type != "NOTE":
        errors.append(error_at(prefix, "grace prefix must be followed by a note"))
        return None, start + 1

    # Octave marks may sit between the note and its underlines (^4'/)
    _, _, underline_start = consume_suffix_marks(tokens, note_index + 1)
    _, underline_end = consume_underlines(tokens, underline_start)
    underlines = underline_end - underline_start

    if underlines == 0:
        errors.append(
            error_at(
                prefix,
                "grace note must carry a duration-underline: "
                "use ^note/ for a long grace, ^note// for a short one",
            )
        )
    grace_type: GraceType = "short" if underlines >= 2 else "long"

    note, next_index = parse_note(tokens, note_index)
    return replace(note, is_grace=True, grace_type=grace_type), next_index


def parse_body(tokens: list[Token]) -> tuple[list[Measure], list[ParseError]]:
    """Parse body tokens into measures.

    Empty measures (consecutive barlines) are not emitted, so measure numbers
    stay contiguous. ``SLUR_START``/``SLUR_END`` are left for the grouper.

    Parameters
    ----------
    tokens : list[Token]
        The full token stream; non-body tokens are filtered out here.

    Returns
    -------
    tuple[list[Measure], list[ParseError]]
        Measures in source order and the lexical/structural diagnostics.

    Examples
    --------
    >>> measures, errors = parse_body(tokenize("1 2 | 3 4 |"))
    >>> [m.number for m in measures], [len(m.notes) for m in measures]
    ([1, 2], [2, 2])
    """
    tokens = body_tokens(tokens)
    measures: list[Measure] = []
    errors: list[ParseError] = []
    current: list[NoteElement] = []
    measure_start = tokens[0].offset if tokens else 0

    i = 0
    while i < len(tokens):
        token = tokens[i]
        kind = token.type

        if kind == "BARLINE":
            if current:
                measures.append(
                    Measure(
                        number=len(measures) + 1,
                        notes=tuple(current),
                        source_range=SourceRange(start=measure_start, end=token.offset),
                    )
                )
                current = []
            measure_start = token.end
            i += 1

        elif kind == "GRACE_PREFIX":
            grace, i = parse_grace(tokens, i, errors)
            if grace is not None:
                current.append(grace)

        elif kind == "NOTE":
            note, next_index = parse_note(tokens, i)
            trill_type = trill_type_before(tokens, i)
            if trill_type is not None:
                note = replace(note, trill_type=trill_type)
            current.append(note)
            i = next_index

        elif kind == "REST":
            base, i = consume_underlines(tokens, i + 1)
            current.append(
                Rest(duration=Duration(base=base), has_space_before=token.has_space_before)
            )

        elif kind == "TIE":
            current.append(Tie())
            i += 1

        elif kind == "BREATH":
            current.append(Breath())
            i += 1

        elif kind == "ERROR":
            errors.append(error_at(token, f"unrecognized character: {token.value}"))
            i += 1

        else:
            # Slur brackets and modifiers not attached to a note
            i += 1

    if current:
        end = tokens[-1].end if tokens else measure_start
        measures.append(
            Measure(
                number=len(measures) + 1,
                notes=tuple(current),
                source_range=SourceRange(start=measure_start, end=end),
            )
        )

    logger.debug("parsed %d measures, %d body errors", len(measures), len(errors))
    return measures, errors


def parse(source: str) -> ParseResult:
    """Parse a jianpu document into a Score.

    This is the main entry point. It never raises: every problem is
    reported through ``ParseResult.errors``, and ``score`` is None only when
    no measure could be parsed or an internal failure occurred.

    Parameters
    ----------
    source : str
        The raw jianpu text.

    Returns
    -------
    ParseResult
        The score (or None) and all diagnostics.

    Examples
    --------
    >>> result = parse('''标题: 小星星
    ... 拍号: 4/4
    ...
    ... 1 1 5 5 | 6 6 5 - |''')
    >>> result.score.metadata.title
    '小星星'
    >>> len(result.score.measures), result.errors
    (2, ())
    """
    try:
        tokens = tokenize(source)
        metadata, metadata_errors = parse_metadata(tokens)
        measures, body_errors = parse_body(tokens)

        if not measures:
            return ParseResult(
                score=None,
                errors=(
                    ParseError(
                        message="no notes found",
                        position=SourcePosition(line=1, column=1, offset=0),
                        length=0,
                    ),
                ),
            )

        notation = body_tokens(tokens)
        measures, next_beam = assign_beam_groups(measures)
        measures, next_slur = assign_slur_groups(measures, notation)
        measures = associate_lyrics(measures, lyric_tokens(tokens))
        logger.debug(
            "assigned %d beam groups and %d slur groups", next_beam - 1, next_slur - 1
        )

        beat_errors = validate_measure_beats(measures, metadata.time_signature, source)

        return ParseResult(
            score=Score(metadata=metadata, measures=tuple(measures)),
            errors=tuple(metadata_errors + body_errors + beat_errors),
        )
    except Exception as exc:
        logger.exception("unexpected failure while parsing")
        return ParseResult(
            score=None,
            errors=(
                ParseError(
                    message=f"parse failed: {exc}",
                    position=SourcePosition(line=1, column=1, offset=0),
                    length=0,
                ),
            ),
        )
