"""Tests for beam and slur grouping."""

from jianpu_parser import Duration, Measure, Note, Rest, parse
from jianpu_parser.grouping import assign_beam_groups, assign_slur_groups
from jianpu_parser.parser import body_tokens, parse_body
from jianpu_parser.tokenizer import tokenize


def eighth(space: bool = False, dots: int = 0) -> Note:
    return Note(pitch=1, duration=Duration(base=8, dots=dots), has_space_before=space)


def beams(source: str) -> list:
    result = parse(source)
    assert result.score is not None
    return [n.beam_group for m in result.score.measures for n in m.notes]


def slurs(source: str) -> list:
    measures, _ = parse_body(tokenize(source))
    measures, _ = assign_slur_groups(measures, body_tokens(tokenize(source)))
    return [getattr(n, "slur_group", None) for m in measures for n in m.notes]


class TestBeamGroups:
    """Beam grouping from adjacency and duration."""

    def test_adjacent_eighths_share_group(self) -> None:
        groups = beams("1/2/3/4/")
        assert groups[0] is not None
        assert groups == [groups[0]] * 4

    def test_spaced_eighths_not_grouped(self) -> None:
        assert beams("1/ 2/ 3/ 4/") == [None, None, None, None]

    def test_two_groups_in_one_measure(self) -> None:
        groups = beams("1/2/ 3/4/ 5 6 |")
        assert groups[0] == groups[1]
        assert groups[2] == groups[3]
        assert groups[0] != groups[2]
        assert groups[4:] == [None, None]

    def test_quarter_breaks_group(self) -> None:
        assert beams("1/2 3/ 4 5 |")[:2] == [None, None]

    def test_mixed_durations_share_group(self) -> None:
        """A dotted eighth and a sixteenth written together share a beam."""
        measure = Measure(
            number=1,
            notes=(eighth(dots=1), Note(pitch=2, duration=Duration(base=16))),
        )
        measures, next_id = assign_beam_groups([measure])
        assert [n.beam_group for n in measures[0].notes] == [1, 1]
        assert next_id == 2

    def test_rest_breaks_group(self) -> None:
        measure = Measure(
            number=1, notes=(eighth(), Rest(duration=Duration(base=8)), eighth())
        )
        measures, next_id = assign_beam_groups([measure])
        assert [getattr(n, "beam_group", None) for n in measures[0].notes] == [None, None, None]
        assert next_id == 1

    def test_groups_stay_inside_measure(self) -> None:
        measures, _ = assign_beam_groups(
            [Measure(number=1, notes=(eighth(),)), Measure(number=2, notes=(eighth(),))]
        )
        assert [m.notes[0].beam_group for m in measures] == [None, None]

    def test_ids_are_threaded(self) -> None:
        """Ids continue from the given counter."""
        measures, next_id = assign_beam_groups(
            [Measure(number=1, notes=(eighth(), eighth()))], next_id=5
        )
        assert measures[0].notes[0].beam_group == 5
        assert next_id == 6

    def test_input_not_mutated(self) -> None:
        original = [Measure(number=1, notes=(eighth(), eighth()))]
        assign_beam_groups(original)
        assert original[0].notes[0].beam_group is None


class TestSlurGroups:
    """Slur grouping from parentheses."""

    def test_slur_in_one_measure(self) -> None:
        groups = slurs("(1 2 3) 4 |")
        assert groups[0] is not None
        assert groups[:3] == [groups[0]] * 3
        assert groups[3] is None

    def test_slur_spans_barline(self) -> None:
        result = parse("(1 2 | 3 4) 5 |")
        assert result.score is not None
        groups = [n.slur_group for m in result.score.measures for n in m.notes]
        assert groups[0] is not None
        assert groups[:4] == [groups[0]] * 4
        assert groups[4] is None

    def test_separate_slurs(self) -> None:
        groups = slurs("(1 2) (3 4) |")
        assert groups[0] == groups[1]
        assert groups[2] == groups[3]
        assert groups[0] != groups[2]

    def test_nested_parentheses_join_outer_group(self) -> None:
        groups = slurs("((1 2) 3) 4 |")
        assert groups == [1, 1, 1, None]

    def test_stray_close_is_ignored(self) -> None:
        assert slurs(") 1 (2 3) |") == [None, 1, 1]

    def test_unterminated_slur(self) -> None:
        assert slurs("(1 2 | 3") == [1, 1, 1]

    def test_non_notes_are_skipped(self) -> None:
        """Rests and ties inside a slur keep no group."""
        assert slurs("(1 0 - 2) |") == [1, None, None, 1]

    def test_next_id_returned(self) -> None:
        source = "(1) (2) (3) |"
        measures, _ = parse_body(tokenize(source))
        _, next_id = assign_slur_groups(measures, body_tokens(tokenize(source)), next_id=10)
        assert next_id == 13
