"""Lyric parsing and note-to-syllable binding.

Lyric lines (``C`` lines) are split into syllables and bound, in order, to the
non-grace notes of the score across all measures.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from jianpu_parser.models import LyricsSyllable, Measure, MeasureLyrics, Note, Token

logger = logging.getLogger(__name__)

PLACEHOLDER = "_"


def parse_lyrics(text: str) -> list[LyricsSyllable]:
    """Split lyric text into syllables.

    Every character is its own syllable, except that ``(...)`` binds its
    (trimmed) contents to a single note and ``_`` skips a note. Spaces and
    tabs only separate syllables.

    Parameters
    ----------
    text : str
        The lyric text following the ``C`` marker.

    Returns
    -------
    list[LyricsSyllable]
        Syllables in order.

    Examples
    --------
    >>> [s.text for s in parse_lyrics("一 闪 (我的) _")]
    ['一', '闪', '我的', '']
    >>> parse_lyrics("(我的")[0].is_group
    True
    """
    syllables: list[LyricsSyllable] = []
    i = 0

    while i < len(text):
        char = text[i]

        if char in " \t":
            i += 1
            continue

        if char == "(":
            close = text.find(")", i)
            if close == -1:
                syllables.append(LyricsSyllable(text=text[i + 1 :].strip(), is_group=True))
                break
            syllables.append(LyricsSyllable(text=text[i + 1 : close].strip(), is_group=True))
            i = close + 1
            continue

        if char == PLACEHOLDER:
            syllables.append(LyricsSyllable(text="", is_placeholder=True))
        else:
            syllables.append(LyricsSyllable(text=char))
        i += 1

    return syllables


def collect_syllables(tokens: list[Token]) -> list[LyricsSyllable]:
    """Flatten the syllables of every lyric line, in source order."""
    syllables: list[LyricsSyllable] = []
    for marker, text in zip(tokens, tokens[1:]):
        if marker.type == "LYRICS_MARKER" and text.type == "LYRICS_TEXT":
            syllables.extend(parse_lyrics(text.value))
    return syllables


def associate_lyrics(measures: list[Measure], tokens: list[Token]) -> list[Measure]:
    """Bind lyric syllables to notes.

    Each non-grace note takes the next unused syllable. Rests, ties, breath
    marks and grace notes take none. A measure only gets ``lyrics`` when at
    least one syllable was bound to it.

    Parameters
    ----------
    measures : list[Measure]
        Parsed measures.
    tokens : list[Token]
        ``LYRICS_MARKER`` / ``LYRICS_TEXT`` tokens.

    Returns
    -------
    list[Measure]
        Measures with lyrics attached.
    """
    syllables = collect_syllables(tokens)
    if not syllables:
        return measures

    result: list[Measure] = []
    index = 0
    for measure in measures:
        bound: list[LyricsSyllable] = []
        for element in measure.notes:
            if isinstance(element, Note) and not element.is_grace and index < len(syllables):
                bound.append(syllables[index])
                index += 1

        if bound:
            measure = replace(measure, lyrics=MeasureLyrics(syllables=tuple(bound)))
        result.append(measure)

    if index < len(syllables):
        logger.debug("%d lyric syllables left without a note", len(syllables) - index)
    return result
