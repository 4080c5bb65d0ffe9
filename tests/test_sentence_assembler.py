import random

import pytest

from keigo_pipeline.converters import SentenceAssembler
from keigo_pipeline.converters.sentence_assembler import (
    GREETINGS,
    CUSHIONS,
    CLOSINGS,
    EMOJIS,
    HIGHEST_COURTESY,
    OPEN_QUESTION_COURTESY,
    SUPERIOR_COURTESY,
)
from keigo_pipeline.models import ContextDescriptor, Relationship, TimeContext


ALL_EMOJIS = {emoji for emojis in EMOJIS.values() for emoji in emojis}


def test_level_three_has_greeting_and_closing(assembler):
    context = ContextDescriptor(time_context=TimeContext.MORNING)
    text = assembler.generate("資料を送って", context, level=3)

    assert any(text.startswith(greeting + "。") for greeting in GREETINGS[TimeContext.MORNING])
    assert any(closing + "。" in text for closing in CLOSINGS["request"])
    assert "資料をお送りいただけませんでしょうか" in text


def test_low_levels_do_not_depend_on_randomness():
    context = ContextDescriptor()
    first = SentenceAssembler(rng=random.Random(1)).generate("資料を送って", context, level=2)
    second = SentenceAssembler(rng=random.Random(99)).generate("資料を送って", context, level=2)

    assert first == second
    assert first.startswith("資料をお送りください")


def test_question_body_gets_question_ending(assembler):
    text = assembler.generate("どうなった？", ContextDescriptor(), level=1)

    assert text == "どうなった？"


def test_statement_body_gets_request_ending(assembler):
    text = assembler.generate("明日の件", ContextDescriptor(), level=1)

    assert text == "明日の件お願いします。"


@pytest.mark.parametrize("level", [4, 5])
def test_high_levels_end_with_one_emoji(assembler, level):
    text = assembler.generate("資料を送って", ContextDescriptor(), level=level)

    assert text.split(" ")[-1] in ALL_EMOJIS


def test_level_five_always_has_highest_courtesy(assembler):
    for _ in range(10):
        text = assembler.generate("資料を送って", ContextDescriptor(), level=5)
        assert HIGHEST_COURTESY in text


@pytest.mark.parametrize("seed", range(20))
def test_level_four_always_has_courtesy_sentence(seed):
    # 비상사 관계 + 레벨 4: 무작위 분기에 관계없이 배려 문장 1개 이상
    assembler = SentenceAssembler(rng=random.Random(seed))
    courtesy = assembler.courtesy_sentences(ContextDescriptor(), 4)
    assert courtesy
    assert OPEN_QUESTION_COURTESY in courtesy

    text = SentenceAssembler(rng=random.Random(seed)).generate("資料を送って", ContextDescriptor(), level=4)
    assert OPEN_QUESTION_COURTESY in text


def test_superior_level_four_keeps_superior_courtesy():
    context = ContextDescriptor(relationship=Relationship.SUPERIOR)
    for seed in range(10):
        courtesy = SentenceAssembler(rng=random.Random(seed)).courtesy_sentences(context, 4)
        assert SUPERIOR_COURTESY in courtesy


def test_superior_context_uses_superior_cushion():
    assembler = SentenceAssembler(rng=random.Random(3))
    context = ContextDescriptor(relationship=Relationship.SUPERIOR)
    structure = assembler.plan_structure(
        assembler.extract_components("資料を見て"), context, level=3,
    )

    assert structure.cushion in CUSHIONS["superior"]


def test_urgent_tone_beats_relationship_for_cushion():
    assembler = SentenceAssembler(rng=random.Random(3))
    context = ContextDescriptor(relationship=Relationship.SUPERIOR)
    components = assembler.extract_components("至急資料を見て")

    assert components.emotional_tone == "urgent"
    assert assembler.select_cushion(components, context, 3) in CUSHIONS["urgent"]


def test_extract_components_strips_fillers_and_tails(assembler):
    components = assembler.extract_components("ちょっと資料見てだよね")

    assert components.main_content == "資料見て"
    assert components.request_type == "verification"


def test_mean_length_grows_with_level():
    assembler = SentenceAssembler(rng=random.Random(2024))
    context = ContextDescriptor()
    trials = 25

    def mean_length(level):
        return sum(
            len(assembler.generate("これやって", context, level)) for _ in range(trials)
        ) / trials

    assert mean_length(5) >= mean_length(1)
    assert mean_length(3) >= mean_length(1)


def test_generate_variations(assembler):
    variations = assembler.generate_variations("資料を送って", ContextDescriptor(), base_level=3)

    assert len(variations) == 7
    assert [v.level for v in variations[:4]] == [2, 3, 4, 5]
    assert [v.style for v in variations[4:]] == ["business", "friendly"]
    assert all(v.text for v in variations)
    assert variations[0].to_dict()["characteristics"]


def test_analyze_quality(assembler):
    analysis = assembler.analyze_quality(
        "資料を送って",
        "いつもお世話になっております。資料をお送りいただけませんでしょうか。よろしくお願いいたします。",
    )

    assert analysis["score"] == 85
    assert len(analysis["strengths"]) == 2
    assert analysis["improvements"] == []


def test_analyze_quality_minimum_score(assembler):
    analysis = assembler.analyze_quality("資料", "資料")

    assert analysis["score"] == 40
    assert analysis["improvements"]
