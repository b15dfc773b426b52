"""Beat-count validation of measures against the time signature."""

from __future__ import annotations

import logging

from jianpu_parser.models import (
    Breath,
    Measure,
    Note,
    NoteElement,
    ParseError,
    SourcePosition,
    TimeSignature,
)

logger = logging.getLogger(__name__)

# Allowed float error when comparing beat sums
BEAT_TOLERANCE = 0.001


def calculate_beats(element: NoteElement, beat_value: int) -> float:
    """Compute how many beats an element occupies.

    Breath marks and grace notes take no beat. Each dot adds half of the
    base value.

    Parameters
    ----------
    element : NoteElement
        The element to measure.
    beat_value : int
        The note value that gets one beat (4 in 4/4, 8 in 6/8).

    Returns
    -------
    float
        Length in beats.

    Examples
    --------
    >>> from jianpu_parser.models import Duration, Rest, Tie
    >>> calculate_beats(Tie(), 4)
    1.0
    >>> calculate_beats(Rest(duration=Duration(base=8, dots=1)), 4)
    0.75
    >>> calculate_beats(Note(pitch=1, duration=Duration(base=8)), 8)
    1.0
    """
    if isinstance(element, Breath):
        return 0.0
    if isinstance(element, Note) and element.is_grace:
        return 0.0

    beats = beat_value / element.duration.base
    if element.duration.dots > 0:
        beats *= 1 + 0.5 * element.duration.dots
    return beats


def measure_beats(measure: Measure, beat_value: int) -> float:
    """Sum the beats of every element in a measure."""
    return sum(calculate_beats(element, beat_value) for element in measure.notes)


def position_of(source: str, offset: int) -> SourcePosition:
    """Convert an absolute offset into a 1-based line/column position.

    Examples
    --------
    >>> position_of("1 2 |\\n3 4 |", 6)
    SourcePosition(line=2, column=1, offset=6)
    """
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return SourcePosition(line=line, column=offset - line_start + 1, offset=offset)


def validate_measure_beats(
    measures: list[Measure], time_signature: TimeSignature, source: str = ""
) -> list[ParseError]:
    """Report every measure whose length differs from the time signature.

    The diagnostics are not fatal; the score stays usable.

    Parameters
    ----------
    measures : list[Measure]
        Measures to check.
    time_signature : TimeSignature
        The declared time signature.
    source : str
        Source text, used to turn measure offsets into line/column positions.

    Returns
    -------
    list[ParseError]
        One diagnostic per mismatching measure, spanning that measure.
    """
    errors: list[ParseError] = []
    expected = time_signature.beats

    for measure in measures:
        actual = measure_beats(measure, time_signature.beat_value)
        if abs(actual - expected) <= BEAT_TOLERANCE:
            continue

        start = measure.source_range.start if measure.source_range else 0
        end = measure.source_range.end if measure.source_range else 0
        position = (
            position_of(source, start)
            if source
            else SourcePosition(line=1, column=1, offset=start)
        )
        errors.append(
            ParseError(
                message=(
                    f"measure {measure.number} duration mismatch: "
                    f"expected {expected} beats, got {actual:.2f} beats"
                ),
                position=position,
                length=end - start,
            )
        )

    if errors:
        logger.debug("%d of %d measures fail beat validation", len(errors), len(measures))
    return errors
