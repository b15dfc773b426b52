"""Jianpu parser library for numbered musical notation.

This library compiles plain-text jianpu (numbered notation) into an
immutable score AST: notes with resolved pitch, octave, accidental and
duration, grouped into measures with beams, slurs and lyrics, plus
non-fatal diagnostics for unknown characters and wrong beat counts.

Examples
--------
>>> from jianpu_parser import parse

>>> result = parse('''标题: 小星星
... 调号: C
... 拍号: 4/4
...
... 1 1 5 5 | 6 6 5 - |
... C 一 闪 一 闪 亮 晶 晶''')
>>> result.score.metadata.title
'小星星'
>>> [s.text for s in result.score.measures[1].lyrics.syllables]
['亮', '晶', '晶']
>>> result.errors
()
"""

from jianpu_parser.models import (
    Breath,
    Duration,
    LyricsSyllable,
    Measure,
    MeasureLyrics,
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
)
from jianpu_parser.parser import parse, parse_body, parse_metadata
from jianpu_parser.pitch import note_to_frequency, note_to_midi
from jianpu_parser.tokenizer import tokenize

__all__ = [
    "Breath",
    "Duration",
    "LyricsSyllable",
    "Measure",
    "MeasureLyrics",
    "Metadata",
    "Note",
    "NoteElement",
    "ParseError",
    "ParseResult",
    "Rest",
    "Score",
    "SourcePosition",
    "SourceRange",
    "Tie",
    "TimeSignature",
    "Token",
    "note_to_frequency",
    "note_to_midi",
    "parse",
    "parse_body",
    "parse_metadata",
    "tokenize",
]
