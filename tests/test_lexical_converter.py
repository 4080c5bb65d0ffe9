import pytest

from keigo_pipeline.converters import LexicalConverter
from keigo_pipeline.converters.lexical_converter import SUPERIOR_PHRASES, URGENT_PHRASES
from keigo_pipeline.models import ContextDescriptor, Relationship, Urgency


@pytest.fixture
def converter():
    return LexicalConverter()


@pytest.mark.parametrize(
    "text, casual, polite",
    [
        ("アプデしといて", "アプデ", "アップデート"),
        ("ググるね", "ググる", "検索する"),
        ("バグがある", "バグ", "不具合"),
    ]
)
def test_dictionary_word_is_replaced_and_logged_once(converter, text, casual, polite):
    result = converter.convert(text)

    assert polite in result.text
    assert casual not in result.text

    entries = [c for c in result.conversions if c.type == "word" and c.original == casual]
    assert len(entries) == 1
    assert entries[0].count >= 1
    assert entries[0].converted == polite


def test_word_replacement_is_global(converter):
    result = converter.convert("バグとバグ")

    entry = next(c for c in result.conversions if c.original == "バグ")
    assert entry.count == 2
    assert "バグ" not in result.text


def test_phrase_replacement_follows_words(converter):
    result = converter.convert("アプデして")

    assert result.text == "アップデートしていただけませんか"
    assert [c.type for c in result.conversions] == ["word", "phrase"]


def test_superior_context_uses_superior_phrases(converter):
    context = ContextDescriptor(relationship=Relationship.SUPERIOR)
    result = converter.convert("これやって", context)

    assert SUPERIOR_PHRASES["やって"].split("、")[0] in result.text
    phrase = next(c for c in result.conversions if c.original == "やって")
    assert "superior" in phrase.context


def test_superior_overlay_wins_over_urgent(converter):
    context = ContextDescriptor(relationship=Relationship.SUPERIOR, urgency=Urgency.URGENT)
    phrases = converter.phrase_set(context)

    assert phrases["やって"] == SUPERIOR_PHRASES["やって"]
    assert phrases["やって"] != URGENT_PHRASES["やって"]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("明日だっけ？", "明日でしたでしょうか？"),
        ("そうじゃん", "そうですね"),
        ("いい天気だよね", "いい天気ですよね"),
        ("田中さんに了解って言って", "田中さんに了解とお伝えください"),
        ("なんで動かない？", "なぜ動かないのでしょうか？"),
    ]
)
def test_structural_rules(converter, text, expected):
    assert converter.convert(text).text == expected


def test_single_clause_gets_request_form(converter):
    result = converter.convert("これ")

    assert result.text == "これをお願いします"
    assert result.conversions[-1].type == "pattern"


def test_single_clause_with_polite_ending_is_left_alone(converter):
    assert converter.convert("ありがとうございます").text == "ありがとうございます"


def test_mixed_script_is_not_a_single_clause(converter):
    assert converter.convert("資料").text == "資料"


def test_lengths_are_recorded(converter):
    result = converter.convert("アプデ")

    assert result.original_length == 3
    assert result.converted_length == len(result.text)


def test_find_casual_words_reports_leftovers(converter):
    assert converter.find_casual_words("まじでやばい") == ["まじ", "やばい"]


def test_is_abrupt(converter):
    assert converter.is_abrupt("確認して") is True
    assert converter.is_abrupt("お忙しいところ恐れ入りますが、ご確認をお願いいたします") is False


def test_suggestions_for_urgent_superior_context(converter):
    context = ContextDescriptor(relationship=Relationship.SUPERIOR, urgency=Urgency.URGENT)
    suggestions = converter.suggestions("資料をお送りします", context)
    types = [s.type for s in suggestions]

    assert "urgency" in types
    assert "relationship" in types


def test_suggestions_list_remaining_casual_words(converter):
    suggestions = converter.suggestions("やっぱ無理")

    improvement = next(s for s in suggestions if s.type == "improvement")
    assert "やっぱ" in improvement.examples


def test_variations(converter):
    variations = converter.variations("これやって", ContextDescriptor(), level=2)

    assert [v.type for v in variations] == ["standard", "formal", "casual-polite"]
    assert [v.level for v in variations] == [2, 3, 1]
    assert SUPERIOR_PHRASES["やって"].split("、")[0] in variations[1].text
