"""Tests for beat-count validation."""

import pytest

from jianpu_parser import (
    Breath,
    Duration,
    Measure,
    Note,
    Rest,
    SourceRange,
    Tie,
    TimeSignature,
    parse,
)
from jianpu_parser.validation import (
    calculate_beats,
    measure_beats,
    position_of,
    validate_measure_beats,
)


class TestCalculateBeats:
    """Per-element beat contribution."""

    @pytest.mark.parametrize(
        ("element", "beat_value", "expected"),
        [
            (Note(pitch=1), 4, 1.0),
            (Note(pitch=1, duration=Duration(base=2)), 4, 2.0),
            (Note(pitch=1, duration=Duration(base=1)), 4, 4.0),
            (Note(pitch=1, duration=Duration(base=8)), 4, 0.5),
            (Note(pitch=1, duration=Duration(base=16)), 4, 0.25),
            (Note(pitch=1, duration=Duration(base=4, dots=1)), 4, 1.5),
            (Note(pitch=1, duration=Duration(base=4, dots=2)), 4, 2.0),
            (Note(pitch=1, duration=Duration(base=8)), 8, 1.0),
            (Rest(duration=Duration(base=8)), 4, 0.5),
            (Tie(), 4, 1.0),
            (Breath(), 4, 0.0),
        ],
    )
    def test_beats(self, element, beat_value: int, expected: float) -> None:
        assert calculate_beats(element, beat_value) == pytest.approx(expected)

    def test_grace_takes_no_beat(self) -> None:
        grace = Note(pitch=3, duration=Duration(base=8), is_grace=True, grace_type="long")
        assert calculate_beats(grace, 4) == 0.0

    def test_measure_beats(self) -> None:
        measure = Measure(number=1, notes=(Note(pitch=1), Tie(), Breath(), Rest()))
        assert measure_beats(measure, 4) == pytest.approx(3.0)


class TestValidateMeasureBeats:
    """Measure-level diagnostics."""

    def test_matching_measure(self) -> None:
        assert parse("1 2 3 4 |").errors == ()

    def test_too_many_beats(self) -> None:
        result = parse("1 2 3 4 5 |")
        assert result.score is not None
        assert len(result.errors) == 1
        message = result.errors[0].message
        assert "measure 1" in message
        assert "expected 4" in message
        assert "got 5.00" in message

    def test_diagnostic_spans_measure(self) -> None:
        source = "拍号: 3/4\n\n1 2 3 | 1 2 |"
        result = parse(source)
        assert [e.message for e in result.errors] == [
            "measure 2 duration mismatch: expected 3 beats, got 2.00 beats"
        ]
        error = result.errors[0]
        assert error.position.line == 3
        assert error.position.column == 8
        assert error.position.offset == 16
        assert error.length == 5

    def test_compound_time(self) -> None:
        assert parse("拍号: 6/8\n\n1/ 2/ 3/ 4/ 5/ 6/ |").errors == ()

    def test_tolerance(self) -> None:
        """Four sixteenths, then a dotted eighth with a sixteenth, each fill one beat."""
        assert parse("1//2//3//4//  5./6// 7 1 |").errors == ()

    def test_without_source(self) -> None:
        measure = Measure(number=3, notes=(Note(pitch=1),), source_range=SourceRange(5, 9))
        (error,) = validate_measure_beats([measure], TimeSignature())
        assert error.position.offset == 5
        assert error.position.line == 1
        assert error.length == 4

    def test_position_of(self) -> None:
        position = position_of("1 2 |\n3 4 |", 8)
        assert (position.line, position.column, position.offset) == (2, 3, 8)
