from concurrent.futures import ThreadPoolExecutor

import pytest

from keigo_pipeline.converters import SentenceAssembler
from keigo_pipeline.engine import ConversionOrchestrator
from keigo_pipeline.models import (
    Approach,
    ContextDescriptor,
    ConversionOptions,
    ConversionResult,
    FormalityLevel,
    Relationship,
    Situation,
    Urgency,
)


class ExplodingAssembler(SentenceAssembler):
    def generate(self, text, context, level=3):
        raise RuntimeError("assembly failed")


# ==================== 시나리오 ====================

def test_casual_request_at_explicit_level(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2})

    assert "アップデート" in result.converted
    assert "アプデ" not in result.converted
    assert result.level == 2
    assert result.metadata["engine"] == "enhanced-v2.0"


def test_dialect_bug_report(orchestrator):
    result = orchestrator.convert("バグった、どないしよ")

    assert result.context.situation in (Situation.TECHNICAL, Situation.GENERAL)
    assert "バグった" not in result.converted


def test_empty_input_returns_fallback_shape(orchestrator):
    result = orchestrator.convert("")

    assert result.is_fallback
    assert result.converted == "をお願いします。"
    assert result.level == 2
    assert result.analysis.confidence == pytest.approx(0.3)
    assert result.suggestions[0].type == "error"
    assert result.analysis.detected_issues["issues"] == ["processing_error"]


@pytest.mark.parametrize("text", ["   ", "😊🙏", "Please check the report", "！？", None])
def test_convert_never_raises(orchestrator, text):
    result = orchestrator.convert(text)

    assert isinstance(result, ConversionResult)
    assert isinstance(result.converted, str)
    assert 1 <= result.level <= 5
    assert result.to_dict()["metadata"]["engine"]


def test_internal_failure_falls_back(make_orchestrator):
    orchestrator = make_orchestrator(assembler=ExplodingAssembler())
    result = orchestrator.convert("資料を送って")

    assert result.is_fallback
    assert result.converted == "資料を送ってをお願いします。"
    assert result.metadata["error"] == "assembly failed"
    assert orchestrator.history == []


# ==================== 후보 / 선택 ====================

def test_candidate_set_for_general_situation(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2})
    approaches = [c.approach for c in result.variations]

    assert approaches[:2] == [Approach.WORD_LEVEL, Approach.SENTENCE_GENERATION]
    assert approaches.count(Approach.LEVEL_VARIATION) == 7
    assert Approach.CONTEXT_OPTIMIZED not in approaches
    assert all(c.score is not None for c in result.variations)


def test_context_optimized_candidate_outside_general(orchestrator):
    result = orchestrator.convert("会議の資料を送って")
    optimized = [c for c in result.variations if c.approach == Approach.CONTEXT_OPTIMIZED]

    assert len(optimized) == 1
    assert optimized[0].description == "businessコンテキスト最適化版"


def test_score_candidate_formula(orchestrator):
    from keigo_pipeline.models import ConversionCandidate

    context = ContextDescriptor()
    candidate = ConversionCandidate(
        approach=Approach.SENTENCE_GENERATION, text="x", level=4, confidence=0.9,
    )

    assert orchestrator.score_candidate(candidate, context, 2) == pytest.approx(90 + 10 - 10)


def test_length_bonus_uses_issue_count(orchestrator, analyzer):
    from keigo_pipeline.models import ConversionCandidate

    context = analyzer.analyze("やって")   # 4 issues → 80자 초과 시 보너스
    short = ConversionCandidate(approach=Approach.WORD_LEVEL, text="あ" * 80, level=3, confidence=0.75)
    long = ConversionCandidate(approach=Approach.WORD_LEVEL, text="あ" * 81, level=3, confidence=0.75)

    assert orchestrator.score_candidate(short, context, 3) == pytest.approx(75)
    assert orchestrator.score_candidate(long, context, 3) == pytest.approx(95)


def test_preferred_approach_overrides_scoring(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2, "preferred_approach": "word-level"})
    lexical = orchestrator.lexical.convert("アプデしといてくれる？", result.context)

    assert result.metadata["approach"] == Approach.WORD_LEVEL
    assert result.converted == lexical.text


def test_unknown_preferred_approach_is_ignored(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2, "preferred_approach": "magic"})

    assert result.metadata["approach"] == Approach.SENTENCE_GENERATION


# ==================== 레벨 결정 ====================

@pytest.mark.parametrize(
    "context, expected",
    [
        (ContextDescriptor(), 3),
        (ContextDescriptor(relationship=Relationship.SUPERIOR), 4),
        (ContextDescriptor(relationship=Relationship.SUBORDINATE), 3),
        (ContextDescriptor(urgency=Urgency.URGENT, situation=Situation.BUSINESS), 3),
        (ContextDescriptor(formality_level=FormalityLevel.VERY_CASUAL), 4),
    ]
)
def test_resolve_level_rules(orchestrator, context, expected):
    assert orchestrator.resolve_level(context, ConversionOptions()) == expected


@pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
def test_explicit_level_wins(orchestrator, level):
    context = ContextDescriptor(relationship=Relationship.SUPERIOR)

    assert orchestrator.resolve_level(context, ConversionOptions(level=level)) == level


@pytest.mark.parametrize("level", [0, 9, "3", True])
def test_invalid_explicit_level_is_ignored(orchestrator, level):
    assert orchestrator.resolve_level(ContextDescriptor(), ConversionOptions(level=level)) == 3


def test_learned_preferred_level_raises_target(orchestrator):
    orchestrator.learner.preferences.preferred_level = 5

    assert orchestrator.resolve_level(ContextDescriptor(), ConversionOptions()) == 5


def test_option_overrides_reach_context(orchestrator):
    result = orchestrator.convert("資料を送って", {"relationship": "superior", "urgency": "urgent"})

    assert result.context.relationship == Relationship.SUPERIOR
    assert result.context.urgency == Urgency.URGENT
    assert result.metadata["target_level"] == 4


def test_invalid_override_value_degrades_gracefully(orchestrator):
    result = orchestrator.convert("資料を送って", {"relationship": "boss"})

    assert result.is_fallback


# ==================== 제안 / 개선점 ====================

def test_superior_low_level_gets_escalation_hint(orchestrator):
    result = orchestrator.convert("部長、資料を確認してください", {"level": 2})
    hints = [s for s in result.suggestions if s.type == "level"]

    assert result.level == 2
    assert len(hints) == 1
    assert hints[0].action == "increase_level"


def test_context_suggestions_are_merged(orchestrator):
    result = orchestrator.convert("やって")

    assert any(s.type == "context" for s in result.suggestions)


def test_analyze_improvements():
    improvements = ConversionOrchestrator.analyze_improvements(
        "アプデして", "アップデートをお願いします。よろしくお願いいたします",
    )

    assert improvements == [
        "文章が十分に丁寧な長さになりました",
        "丁寧な表現を追加: よろしく",
        "カジュアルな表現を改善: 2個の単語",
    ]


def test_quality_report_is_attached(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2})

    assert 0.0 <= result.analysis.quality["overall"] <= 1.0


# ==================== 이력 / 통계 ====================

def test_history_is_bounded(make_orchestrator):
    orchestrator = make_orchestrator(history_limit=3)
    for text in ["アプデして", "資料を送って", "これやって", "確認して", "教えて"]:
        orchestrator.convert(text)

    history = orchestrator.history
    assert len(history) == 3
    assert history[0].original == "これやって"


def test_preference_snapshot_after_five_conversions(orchestrator):
    for _ in range(5):
        orchestrator.convert("アプデしといてくれる？", {"level": 2})

    assert orchestrator.preferences.default_level == 2
    assert orchestrator.preferences.preferred_approach == Approach.SENTENCE_GENERATION


def test_stats(orchestrator):
    assert orchestrator.stats()["total_conversions"] == 0

    orchestrator.convert("アプデしといてくれる？", {"level": 2})
    orchestrator.convert("アプデしといてくれる？", {"level": 4})
    stats = orchestrator.stats()

    assert stats["total_conversions"] == 2
    assert stats["average_level"] == pytest.approx(3.0)
    assert stats["most_used_approach"] == Approach.SENTENCE_GENERATION
    assert len(stats["recent_conversions"]) == 2


def test_convert_batch(orchestrator):
    batch = orchestrator.convert_batch(["アプデして", ""])

    assert batch["summary"]["total"] == 2
    assert batch["summary"]["successful"] == 1
    assert len(batch["results"]) == 2
    assert 0 < batch["summary"]["average_confidence"] <= 1


def test_convert_batch_empty(orchestrator):
    assert orchestrator.convert_batch([])["summary"]["average_confidence"] == 0


def test_concurrent_conversions_are_all_recorded(orchestrator):
    texts = ["アプデして", "資料を送って", "これやって", "確認して"] * 5
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(orchestrator.convert, texts))

    assert all(isinstance(r, ConversionResult) for r in results)
    assert len(orchestrator.history) == len(texts)


# ==================== 피드백 ====================

def test_record_feedback_pass_through(orchestrator):
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2})
    fid = orchestrator.record_feedback({
        "original_text": result.original,
        "converted_text": result.converted,
        "user_rating": 5,
        "options": {"level": 5},
    })

    assert fid.startswith("fb_")
    assert orchestrator.learner.preferred_level == 4
    assert orchestrator.resolve_level(ContextDescriptor(), ConversionOptions()) == 4
