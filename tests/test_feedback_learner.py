from datetime import datetime, timedelta

import pytest

from keigo_pipeline.config import LearningConfig
from keigo_pipeline.exceptions import StorageError
from keigo_pipeline.learning import FeedbackLearner, feedback_id, round_half_up
from keigo_pipeline.models import ContextDescriptor, FeedbackInput, PatternKind, Situation
from keigo_pipeline.storage import MemoryStorage, StateStore


MIXED_CONVERSION = "アップデートしといていただけますでしょうか"
MIXED_SIGNATURE = "negative_incomplete_conversion_casual_formal_mix"


class BrokenStore(StateStore):
    def load_state(self, key):
        raise StorageError("unreadable")

    def save_state(self, key, blob):
        raise StorageError("unwritable")


def negative_payload():
    return {
        "original_text": "アプデしといて",
        "converted_text": MIXED_CONVERSION,
        "user_rating": 1,
    }


def test_repeated_negative_feedback_accumulates(learner):
    learner.record_feedback(negative_payload())
    learner.record_feedback(negative_payload())

    learned = learner.get_pattern(MIXED_SIGNATURE)
    assert learned.kind == PatternKind.NEGATIVE
    assert learned.occurrences == 2
    assert learned.confidence == pytest.approx(0.20)


def test_confidence_never_decreases_and_saturates(learner):
    previous = 0.0
    for _ in range(12):
        learner.record_feedback(negative_payload())
        confidence = learner.get_pattern(MIXED_SIGNATURE).confidence
        assert confidence >= previous
        previous = confidence

    assert previous == pytest.approx(0.95)


def test_confident_negative_pattern_is_avoided(learner):
    for _ in range(5):
        learner.record_feedback(negative_payload())

    assert "casual_formal_mix" in learner.preferences.avoided_patterns


def test_camel_case_payload_is_accepted(learner):
    fid = learner.record_feedback({
        "originalText": "アプデしといて",
        "convertedText": MIXED_CONVERSION,
        "userRating": 2,
    })

    assert fid.startswith("fb_")
    assert len(fid) == 15
    assert learner.feedback_count == 1


@pytest.mark.parametrize("rating", [0, 6, "5", None, True])
def test_malformed_rating_raises(learner, rating):
    with pytest.raises(ValueError):
        learner.record_feedback({
            "original_text": "a",
            "converted_text": "b",
            "user_rating": rating,
        })
    assert learner.feedback_count == 0


def test_positive_feedback_updates_preferred_level(learner):
    learner.record_feedback(FeedbackInput(
        original_text="みんなも欲しがってるやん",
        converted_text="皆さんも関心を持たれているようですね",
        user_rating=5,
        context=ContextDescriptor(situation=Situation.BUSINESS),
        options={"level": 5},
    ))

    assert learner.preferred_level == 4
    kinds = {p.pattern for p in learner.patterns(PatternKind.POSITIVE)}
    assert "successful_standardization" in kinds
    assert learner.preferences.context_preferences["business"].success_count == 1


def test_neutral_rating_does_not_touch_preferences(learner):
    learner.record_feedback({"original_text": "a", "converted_text": "b", "user_rating": 3})

    assert learner.preferred_level == 3
    assert learner.preferences.context_preferences["general"].success_count == 0
    assert learner.preferences.context_preferences["general"].problem_count == 0


def test_correction_patterns(learner):
    learner.record_feedback({
        "original_text": "資料 送って",
        "converted_text": "資料を お送りいただけますでしょうか",
        "user_rating": 3,
        "user_correction": "資料を お送りください、お願いします",
    })

    corrections = learner.patterns(PatternKind.CORRECTION)
    pairs = {(p.pattern, p.replacement) for p in corrections}
    assert ("お送りいただけますでしょうか", "お送りください、お願いします") in pairs
    assert ("いただけますでしょうか", "お願いします") in pairs
    assert all(p.confidence == pytest.approx(0.20) for p in corrections)


def test_state_survives_reload():
    store = MemoryStorage()
    first = FeedbackLearner(store=store)
    first.record_feedback(negative_payload())

    second = FeedbackLearner(store=store)

    assert second.get_pattern(MIXED_SIGNATURE).occurrences == 1
    assert second.feedback_count == 1
    assert LearningConfig.STATE_KEY in store.keys()


def test_broken_store_does_not_block_learning():
    learner = FeedbackLearner(store=BrokenStore())
    learner.record_feedback(negative_payload())

    assert learner.get_pattern(MIXED_SIGNATURE).occurrences == 1
    assert learner.save_state() is False


def test_failed_processing_leaves_no_partial_update(monkeypatch):
    store = MemoryStorage()
    learner = FeedbackLearner(store=store)

    def broken_update(feedback):
        raise RuntimeError("preference update failed")

    monkeypatch.setattr(learner, "_update_preferences", broken_update)
    fid = learner.record_feedback(negative_payload())

    assert fid.startswith("fb_")
    assert learner.get_pattern(MIXED_SIGNATURE) is None
    assert learner.patterns() == []
    assert learner.feedback_count == 0
    assert store.keys() == []


def test_failed_processing_keeps_earlier_learning(learner, monkeypatch):
    learner.record_feedback(negative_payload())

    def broken_update(feedback):
        raise RuntimeError("preference update failed")

    monkeypatch.setattr(learner, "_update_preferences", broken_update)
    learner.record_feedback(negative_payload())

    assert learner.get_pattern(MIXED_SIGNATURE).occurrences == 1
    assert learner.feedback_count == 1


def test_suggestions_for_learned_patterns(learner):
    for _ in range(6):
        learner.record_feedback(negative_payload())

    suggestions = learner.suggestions_for("casual_formal_mix を含む文")
    assert suggestions[0]["type"] == "avoidance"


def test_improvement_trend():
    learner = FeedbackLearner(store=MemoryStorage())
    start = datetime(2024, 1, 1)
    for i in range(10):
        learner.record_feedback(FeedbackInput(
            original_text="a",
            converted_text="b",
            user_rating=1 if i < 5 else 5,
            timestamp=(start + timedelta(hours=i)).isoformat(),
        ))

    assert learner.improvement_trend() == "improving"
    report = learner.improvement_report(now=start + timedelta(days=1))
    assert report["total_feedback"] == 10
    assert report["recent_feedback"] == 10
    assert report["average_rating"] == pytest.approx(3.0)


def test_trend_needs_enough_feedback(learner):
    learner.record_feedback(negative_payload())

    assert learner.improvement_trend() == "insufficient_data"


def test_reset_clears_everything(learner):
    learner.record_feedback(negative_payload())
    learner.reset()

    assert learner.patterns() == []
    assert learner.feedback_count == 0
    assert learner.preferred_level == 3


def test_recommendations_include_level_preference(learner):
    recommendations = learner.recommendations()

    assert recommendations[0]["type"] == "level_preference"
    assert recommendations[0]["value"] == 3


def test_helpers():
    assert round_half_up(3.5) == 4
    assert round_half_up(2.5) == 3
    assert feedback_id("a", "b", "t") == feedback_id("a", "b", "t")
    assert feedback_id("a", "b", "t") != feedback_id("a", "b", "u")
