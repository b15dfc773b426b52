"""Beam and slur grouping for parsed measures.

Both passes return new measures rather than mutating, and take the next free
group id as an argument so that ids stay unique across calls without any
module-level counter.
"""

from __future__ import annotations

from dataclasses import replace

from jianpu_parser.models import Measure, Note, NoteElement, Token

# Eighth notes and shorter carry a beam
MIN_BEAMED_BASE = 8


def is_beamable(element: NoteElement) -> bool:
    """Check if an element can join a beam group (a note of eighth or shorter)."""
    return isinstance(element, Note) and element.duration.base >= MIN_BEAMED_BASE


def assign_beam_groups(measures: list[Measure], next_id: int = 1) -> tuple[list[Measure], int]:
    """Assign beam group ids to runs of adjacent short notes.

    A run starts at any beamable note and extends while the following element
    is also beamable and was written without a space before it. Runs of two
    or more notes share a fresh id; single notes get none. Groups never cross
    a barline.

    Parameters
    ----------
    measures : list[Measure]
        Parsed measures.
    next_id : int
        The first id to hand out.

    Returns
    -------
    tuple[list[Measure], int]
        Updated measures and the next unused id.

    Examples
    --------
    >>> from jianpu_parser.models import Duration
    >>> eighth = Note(pitch=1, duration=Duration(base=8))
    >>> measures, next_id = assign_beam_groups([Measure(number=1, notes=(eighth, eighth))])
    >>> [n.beam_group for n in measures[0].notes], next_id
    ([1, 1], 2)
    """
    result: list[Measure] = []

    for measure in measures:
        notes = list(measure.notes)
        i = 0
        while i < len(notes):
            if not is_beamable(notes[i]):
                i += 1
                continue

            end = i
            while end + 1 < len(notes):
                following = notes[end + 1]
                if not is_beamable(following) or following.has_space_before:
                    break
                end += 1

            if end > i:
                for j in range(i, end + 1):
                    notes[j] = replace(notes[j], beam_group=next_id)
                next_id += 1

            i = end + 1

        result.append(replace(measure, notes=tuple(notes)))

    return result, next_id


def assign_slur_groups(
    measures: list[Measure], tokens: list[Token], next_id: int = 1
) -> tuple[list[Measure], int]:
    """Assign slur group ids from parenthesis nesting in the token stream.

    The outermost ``(`` opens a new group and its matching ``)`` closes it;
    inner parentheses join the enclosing group. The n-th ``NOTE`` token is
    matched to the n-th parsed note, so slurs may span barlines.

    Parameters
    ----------
    measures : list[Measure]
        Parsed measures.
    tokens : list[Token]
        Body tokens the measures were parsed from.
    next_id : int
        The first id to hand out.

    Returns
    -------
    tuple[list[Measure], int]
        Updated measures and the next unused id.
    """
    slurred: dict[int, int] = {}
    depth = 0
    active: int | None = None
    note_index = 0

    for token in tokens:
        if token.type == "SLUR_START":
            depth += 1
            if depth == 1:
                active = next_id
                next_id += 1
        elif token.type == "SLUR_END":
            # A stray ")" does not open a negative depth
            depth = max(depth - 1, 0)
            if depth == 0:
                active = None
        elif token.type == "NOTE":
            if active is not None:
                slurred[note_index] = active
            note_index += 1

    result: list[Measure] = []
    note_index = 0
    for measure in measures:
        notes: list[NoteElement] = []
        for element in measure.notes:
            if isinstance(element, Note):
                group = slurred.get(note_index)
                if group is not None:
                    element = replace(element, slur_group=group)
                note_index += 1
            notes.append(element)
        result.append(replace(measure, notes=tuple(notes)))

    return result, next_id
