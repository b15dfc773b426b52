"""Pitch resolution for parsed notes.

This module maps a jianpu scale degree, in the key of the score, to a MIDI
note number or a frequency. Degree 1 of the middle octave is placed in the
octave of middle C (C4 = MIDI 60), and A4 = 440 Hz.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jianpu_parser.models import Note

# Accepted key names, in header order
KEY_NAMES: tuple[str, ...] = (
    "C", "D", "E", "F", "G", "A", "B",
    "Db", "Eb", "Gb", "Ab", "Bb",
    "C#", "D#", "F#", "G#", "A#",
)

# Major scale degree to semitones above the tonic
DEGREE_TO_SEMITONES: dict[int, int] = {
    1: 0,
    2: 2,
    3: 4,
    4: 5,
    5: 7,
    6: 9,
    7: 11,
}

ACCIDENTAL_TO_SEMITONES: dict[str | None, int] = {
    "sharp": 1,
    "flat": -1,
    None: 0,
}

MIDDLE_C = 60
A4_MIDI = 69
A4_FREQUENCY = 440.0


def is_key_name(name: str) -> bool:
    """Check if ``name`` is one of the accepted key names.

    Examples
    --------
    >>> is_key_name("Bb")
    True
    >>> is_key_name("Cb")
    False
    """
    return name in KEY_NAMES


def key_to_pc(key: str) -> int:
    """Convert a key name to the pitch class (0-11) of its tonic.

    Parameters
    ----------
    key : str
        Key name (e.g., "C", "F#", "Bb").

    Returns
    -------
    int
        Pitch class, where C=0.

    Raises
    ------
    ValueError
        If the key name is not accepted.

    Examples
    --------
    >>> key_to_pc("G")
    7
    >>> key_to_pc("Db")
    1
    """
    if not is_key_name(key):
        msg = f"Unknown key: {key}"
        raise ValueError(msg)

    from pychord.utils import note_to_val

    return note_to_val(key) % 12


def note_to_midi(note: Note, key: str = "C") -> int:
    """Resolve a note to a MIDI note number.

    Parameters
    ----------
    note : Note
        A parsed note.
    key : str
        Key of the score.

    Returns
    -------
    int
        MIDI note number.

    Examples
    --------
    >>> from jianpu_parser.models import Note
    >>> note_to_midi(Note(pitch=1))
    60
    >>> note_to_midi(Note(pitch=5, octave=1), key="D")
    81
    >>> note_to_midi(Note(pitch=7, octave=-1, accidental="flat"))
    58
    """
    return (
        MIDDLE_C
        + key_to_pc(key)
        + DEGREE_TO_SEMITONES[note.pitch]
        + 12 * note.octave
        + ACCIDENTAL_TO_SEMITONES[note.accidental]
    )


def note_to_frequency(note: Note, key: str = "C") -> float:
    """Resolve a note to a frequency in Hz (equal temperament, A4 = 440 Hz).

    Examples
    --------
    >>> from jianpu_parser.models import Note
    >>> note_to_frequency(Note(pitch=6))
    440.0
    """
    return A4_FREQUENCY * 2 ** ((note_to_midi(note, key) - A4_MIDI) / 12)
