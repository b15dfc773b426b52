"""Tests for lyric parsing and association."""

import pytest

from jianpu_parser import LyricsSyllable, parse
from jianpu_parser.lyrics import associate_lyrics, collect_syllables, parse_lyrics
from jianpu_parser.parser import lyric_tokens, parse_body
from jianpu_parser.tokenizer import tokenize


def syllable_texts(source: str) -> list[list[str] | None]:
    result = parse(source)
    assert result.score is not None
    return [
        [s.text for s in m.lyrics.syllables] if m.lyrics is not None else None
        for m in result.score.measures
    ]


class TestParseLyrics:
    """Lyric text to syllables."""

    def test_single_characters(self) -> None:
        assert parse_lyrics("一 闪 一 闪") == [
            LyricsSyllable(text="一"),
            LyricsSyllable(text="闪"),
            LyricsSyllable(text="一"),
            LyricsSyllable(text="闪"),
        ]

    def test_characters_without_spaces(self) -> None:
        assert [s.text for s in parse_lyrics("亮晶晶")] == ["亮", "晶", "晶"]

    def test_group(self) -> None:
        syllables = parse_lyrics("( 我的 ) 祖 国")
        assert syllables[0] == LyricsSyllable(text="我的", is_group=True)
        assert [s.text for s in syllables[1:]] == ["祖", "国"]

    def test_unterminated_group(self) -> None:
        assert parse_lyrics("祖 (我的") == [
            LyricsSyllable(text="祖"),
            LyricsSyllable(text="我的", is_group=True),
        ]

    def test_placeholder(self) -> None:
        syllables = parse_lyrics("星 _ _ 光")
        assert [s.is_placeholder for s in syllables] == [False, True, True, False]
        assert syllables[1].text == ""

    @pytest.mark.parametrize("text", ["", "   ", "\t"])
    def test_blank(self, text: str) -> None:
        assert parse_lyrics(text) == []


class TestAssociateLyrics:
    """Binding syllables to notes."""

    def test_placeholders_bound(self) -> None:
        result = parse("1 2 3 4 |\nC 一 _ _ 四")
        assert result.errors == ()
        syllables = result.score.measures[0].lyrics.syllables
        assert len(syllables) == 4
        assert [s.is_placeholder for s in syllables] == [False, True, True, False]

    def test_across_measures(self) -> None:
        assert syllable_texts("1 2 3 4 | 5 6 7 1 |\nC 一 二 三 四 五 六 七 八") == [
            ["一", "二", "三", "四"],
            ["五", "六", "七", "八"],
        ]

    def test_grace_notes_skipped(self) -> None:
        assert syllable_texts("^1/ 2 3 4 5 |\nC 一 二 三 四") == [["一", "二", "三", "四"]]

    def test_rests_and_ties_skipped(self) -> None:
        assert syllable_texts("1 - 0 2 |\nC 一 二") == [["一", "二"]]

    def test_measure_without_syllables(self) -> None:
        """Only measures that received a syllable get lyrics."""
        assert syllable_texts("1 2 3 4 | 5 6 7 1 |\nC 一 二") == [["一", "二"], None]

    def test_multiple_lyric_lines(self) -> None:
        source = "拍号: 2/4\n\n1 2 | 3 4 |\nC 一\nC 二 三 四"
        assert syllable_texts(source) == [["一", "二"], ["三", "四"]]

    def test_with_melody_marker(self) -> None:
        assert syllable_texts("Q 1 2 3 4 |\nC 一 二 三 四") == [["一", "二", "三", "四"]]

    def test_surplus_syllables_ignored(self) -> None:
        result = parse("1 2 3 4 |\nC 一 二 三 四 五")
        assert result.errors == ()
        assert len(result.score.measures[0].lyrics.syllables) == 4

    def test_empty_lyric_line(self) -> None:
        assert syllable_texts("1 2 3 4 |\nC") == [None]

    def test_collect_syllables_in_order(self) -> None:
        tokens = lyric_tokens(tokenize("1 |\nC 一 (二三)\n2 |\nC _"))
        assert [s.text for s in collect_syllables(tokens)] == ["一", "二三", ""]

    def test_no_lyrics_returns_measures_unchanged(self) -> None:
        measures, _ = parse_body(tokenize("1 2 3 4 |"))
        assert associate_lyrics(measures, []) == measures
