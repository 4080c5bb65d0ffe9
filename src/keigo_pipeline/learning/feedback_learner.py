"""
Feedback Learner

사용자 평가(1~5)와 수정문에서 학습 패턴을 추출하고 선호 모델을 갱신

- rating <= 2: 부정 패턴 (과잉 경어, 반복, 캐주얼/경어 혼재, 과잉 확장)
- rating >= 4: 긍정 패턴 (방언 표준화, 적절한 경어, 자연스러운 흐름)
- user_correction: 단어 단위 diff + 고정 구문 교정표
- 패턴은 signature 기준 upsert (신뢰도 단조 증가)
- 변경 시마다 StateStore에 저장, 로드/저장 실패는 경고만 남김
"""

import copy
import hashlib
import math
import re
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from ..config import LearningConfig
from ..models import (
    PatternKind,
    LearningPattern,
    UserPreferenceModel,
    FeedbackInput,
)
from ..storage import StateStore, MemoryStorage


EXCESSIVE_APOLOGY = re.compile(r"恐れ入ります.*恐縮.*申し訳")
REPETITION = re.compile(r"(.{3,})\1+")
CASUAL_FORMAL_MIX = re.compile(r"[ぁ-んァ-ヶー]+いただけますでしょうか")
DIALECT = re.compile(r"やん|やで|だべ")
POLITE_ENDING = re.compile(r"です|ます")
KEIGO_MARKERS = re.compile(r"いただけ|お願い|恐縮|申し訳")
BROKEN_FLOW = re.compile(r"です。。+|ます。です")

EXPANSION_LIMIT = 4

# (AI 출력에 있는 표현, 사용자가 대신 쓴 표현)
PHRASE_CORRECTIONS = (
    ("いただけますでしょうか", "お願いします"),
    ("恐れ入りますが", "すみませんが"),
    ("よろしくお願いいたします", "よろしくお願いします"),
)

TREND_MIN_FEEDBACK = 10
TREND_THRESHOLD = 0.3
RECENT_DAYS = 7
TOP_N = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def feedback_id(original: str, converted: str, timestamp: str) -> str:
    """fb_ + sha256 앞 12자리"""
    digest = hashlib.sha256(f"{original}{converted}{timestamp}".encode("utf-8")).hexdigest()
    return f"fb_{digest[:12]}"


class FeedbackLearner:
    """
    피드백 학습기

    사용 예시:
        learner = FeedbackLearner(store=JsonStorage())
        fid = learner.record_feedback({
            "original_text": "アプデしといて",
            "converted_text": "アップデートいただけますでしょうか",
            "user_rating": 1,
        })
        learner.patterns()          # [LearningPattern(kind=NEGATIVE, ...)]
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        config: Optional[LearningConfig] = None,
    ):
        self.store = store or MemoryStorage()
        self.config = config or LearningConfig()
        self._lock = threading.RLock()

        self._patterns: Dict[str, LearningPattern] = {}
        self._preferences = UserPreferenceModel()
        self._feedback: List[Dict[str, Any]] = []

        self.load_state()

    # ==================== 기록 ====================

    def record_feedback(self, payload: Union[FeedbackInput, Dict[str, Any]]) -> str:
        """
        피드백 1건 반영

        Args:
            payload: FeedbackInput 또는 동일 키의 dict (camelCase 허용)

        Returns:
            feedback_id

        Raises:
            ValueError: user_rating이 1~5 정수가 아님
        """
        if not isinstance(payload, FeedbackInput):
            payload = FeedbackInput.from_dict(payload)

        fid = feedback_id(payload.original_text, payload.converted_text, payload.timestamp)

        with self._lock:
            # 처리 도중 실패하면 패턴/선호 모델을 처리 전 상태로 되돌림
            patterns = copy.deepcopy(self._patterns)
            preferences = copy.deepcopy(self._preferences)
            try:
                self._process(payload)
            except Exception as e:
                self._patterns = patterns
                self._preferences = preferences
                logger.error(f"[FeedbackLearner] 피드백 처리 실패, 변경 취소 ({fid}): {e}")
                return fid

            record = payload.to_dict()
            record["id"] = fid
            self._feedback.append(record)
            self.save_state()

        logger.info(f"[FeedbackLearner] 피드백 기록: {fid} (rating={payload.user_rating})")
        return fid

    def _process(self, feedback: FeedbackInput):
        context = feedback.context.to_dict() if feedback.context else {}

        if feedback.user_rating <= 2:
            for pattern_type, pattern in self.problematic_patterns(
                feedback.original_text, feedback.converted_text
            ):
                learned = self._upsert(PatternKind.NEGATIVE, pattern_type, pattern, context)
                logger.debug(f"[FeedbackLearner] 부정 패턴: {pattern_type} - {pattern}")
                if (learned.confidence >= self.config.AVOID_THRESHOLD
                        and learned.pattern not in self._preferences.avoided_patterns):
                    self._preferences.avoided_patterns.append(learned.pattern)

        elif feedback.user_rating >= 4:
            for pattern_type, pattern in self.successful_patterns(
                feedback.original_text, feedback.converted_text
            ):
                self._upsert(PatternKind.POSITIVE, pattern_type, pattern, context)
                logger.debug(f"[FeedbackLearner] 긍정 패턴: {pattern_type} - {pattern}")

        if feedback.user_correction:
            for pattern_type, source, target in self.correction_differences(
                feedback.converted_text, feedback.user_correction
            ):
                self._upsert(PatternKind.CORRECTION, pattern_type, source, context, replacement=target)
                logger.debug(f"[FeedbackLearner] 교정 패턴: {source} → {target}")

        self._update_preferences(feedback)

    def _upsert(
        self,
        kind: PatternKind,
        pattern_type: str,
        pattern: str,
        context: Dict[str, Any],
        replacement: Optional[str] = None,
    ) -> LearningPattern:
        """signature 기준으로 생성 또는 갱신"""
        signature = f"{kind.value}_{pattern_type}_{pattern}"
        learned = self._patterns.get(signature)
        if learned is None:
            learned = LearningPattern(
                kind=kind,
                signature=signature,
                pattern_type=pattern_type,
                pattern=pattern,
                replacement=replacement,
            )
            self._patterns[signature] = learned

        step, cap = self._confidence_step(kind)
        learned.observe(context, step, cap)
        return learned

    def _confidence_step(self, kind: PatternKind):
        if kind == PatternKind.NEGATIVE:
            return self.config.NEGATIVE_STEP, self.config.NEGATIVE_CAP
        if kind == PatternKind.POSITIVE:
            return self.config.POSITIVE_STEP, self.config.POSITIVE_CAP
        return self.config.CORRECTION_STEP, self.config.CORRECTION_CAP

    def _update_preferences(self, feedback: FeedbackInput):
        preferences = self._preferences
        if feedback.user_rating >= 4:
            preferences.preferred_level = round_half_up(
                (preferences.preferred_level + feedback.level) / 2
            )

        counter = preferences.context_preference(feedback.situation)
        if feedback.user_rating <= 2:
            counter.problem_count += 1
        elif feedback.user_rating >= 4:
            counter.success_count += 1

    # ==================== 패턴 추출 ====================

    @staticmethod
    def problematic_patterns(original: str, converted: str) -> List[tuple]:
        """(pattern_type, pattern) 목록"""
        patterns = []
        if EXCESSIVE_APOLOGY.search(converted):
            patterns.append(("excessive_politeness", "multiple_apologies"))

        repetition = REPETITION.search(converted)
        if repetition:
            patterns.append(("unnatural_repetition", repetition.group(0)))

        if CASUAL_FORMAL_MIX.search(converted):
            patterns.append(("incomplete_conversion", "casual_formal_mix"))

        if original:
            ratio = len(converted) / len(original)
            if ratio > EXPANSION_LIMIT:
                patterns.append(("excessive_expansion", f"length_ratio_{math.floor(ratio)}"))
        return patterns

    @staticmethod
    def successful_patterns(original: str, converted: str) -> List[tuple]:
        patterns = []
        if DIALECT.search(original) and POLITE_ENDING.search(converted):
            patterns.append(("dialect_conversion", "successful_standardization"))
        if KEIGO_MARKERS.search(converted) and not EXCESSIVE_APOLOGY.search(converted):
            patterns.append(("politeness_level", "appropriate_keigo"))
        if not BROKEN_FLOW.search(converted):
            patterns.append(("sentence_flow", "natural_transition"))
        return patterns

    @staticmethod
    def correction_differences(converted: str, correction: str) -> List[tuple]:
        """(pattern_type, from, to) 목록"""
        corrections = []
        converted_words = converted.split()
        corrected_words = correction.split()
        for i in range(max(len(converted_words), len(corrected_words))):
            before = converted_words[i] if i < len(converted_words) else ""
            after = corrected_words[i] if i < len(corrected_words) else ""
            if before and after and before != after:
                corrections.append(("word_substitution", before, after))

        for before, after in PHRASE_CORRECTIONS:
            if before in converted and after in correction:
                corrections.append(("phrase_correction", before, after))
        return corrections

    # ==================== 조회 ====================

    def patterns(self, kind: Optional[PatternKind] = None) -> List[LearningPattern]:
        with self._lock:
            return [p for p in self._patterns.values() if kind is None or p.kind == kind]

    def get_pattern(self, signature: str) -> Optional[LearningPattern]:
        with self._lock:
            return self._patterns.get(signature)

    @property
    def preferences(self) -> UserPreferenceModel:
        return self._preferences

    @property
    def preferred_level(self) -> int:
        return self._preferences.preferred_level

    @property
    def feedback_count(self) -> int:
        return len(self._feedback)

    def suggestions_for(self, text: str, options: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        학습 데이터 기반 제안

        - 부정 패턴 (신뢰도 > 0.5): 원문에 패턴이 있거나 같은 상황에서 관측된 경우
        - 긍정 패턴 (신뢰도 > 0.7): 항상
        """
        options = options or {}
        situation = options.get("situation") or options.get("context")
        suggestions = []

        with self._lock:
            for learned in self._patterns.values():
                if learned.kind != PatternKind.NEGATIVE or learned.confidence <= 0.5:
                    continue
                seen_in_context = situation is not None and any(
                    ctx.get("situation") == situation for ctx in learned.contexts
                )
                if learned.pattern in text or seen_in_context:
                    suggestions.append({
                        "type": "avoidance",
                        "message": f"学習データに基づき、「{learned.pattern}」パターンを避けることをお勧めします",
                        "confidence": learned.confidence,
                        "pattern": learned.pattern,
                    })

            for learned in self._patterns.values():
                if learned.kind == PatternKind.POSITIVE and learned.confidence > 0.7:
                    suggestions.append({
                        "type": "enhancement",
                        "message": f"学習データに基づき、「{learned.pattern}」パターンの使用をお勧めします",
                        "confidence": learned.confidence,
                        "pattern": learned.pattern,
                    })
        return suggestions

    def recommendations(self) -> List[Dict[str, Any]]:
        """선호 레벨 + 성공률이 있는 상황별 추천"""
        with self._lock:
            preferences = self._preferences
            recommendations = [{
                "type": "level_preference",
                "message": f"過去の評価に基づき、レベル{preferences.preferred_level}をお勧めします",
                "value": preferences.preferred_level,
            }]
            for situation, counter in preferences.context_preferences.items():
                if counter.success_count > 0:
                    recommendations.append({
                        "type": "context_success",
                        "context": situation,
                        "message": f"{situation}文脈では高い評価を得ています",
                        "confidence": counter.success_rate,
                    })
        return recommendations

    def improvement_report(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        with self._lock:
            recent = [
                f for f in self._feedback
                if now - self._parse_timestamp(f.get("timestamp")) < timedelta(days=RECENT_DAYS)
            ]
            average_rating = (
                sum(f["user_rating"] for f in recent) / len(recent) if recent else 0
            )
            return {
                "total_feedback": len(self._feedback),
                "recent_feedback": len(recent),
                "average_rating": average_rating,
                "learned_patterns": len([p for p in self._patterns.values() if p.confidence > 0.5]),
                "improvement_trend": self.improvement_trend(),
                "top_issues": self._top_patterns(PatternKind.NEGATIVE),
                "top_successes": self._top_patterns(PatternKind.POSITIVE),
            }

    def improvement_trend(self) -> str:
        """전반부 / 후반부 평균 평점 비교"""
        history = sorted(self._feedback, key=lambda f: self._parse_timestamp(f.get("timestamp")))
        if len(history) < TREND_MIN_FEEDBACK:
            return "insufficient_data"

        half = len(history) // 2
        early, recent = history[:half], history[half:]
        early_avg = sum(f["user_rating"] for f in early) / len(early)
        recent_avg = sum(f["user_rating"] for f in recent) / len(recent)

        improvement = recent_avg - early_avg
        if improvement > TREND_THRESHOLD:
            return "improving"
        if improvement < -TREND_THRESHOLD:
            return "declining"
        return "stable"

    def _top_patterns(self, kind: PatternKind) -> List[Dict[str, Any]]:
        ranked = sorted(
            (p for p in self._patterns.values() if p.kind == kind),
            key=lambda p: p.occurrences,
            reverse=True,
        )[:TOP_N]
        return [{
            "pattern": p.pattern,
            "type": p.pattern_type,
            "occurrences": p.occurrences,
            "confidence": p.confidence,
        } for p in ranked]

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> datetime:
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError):
            return datetime.min

    # ==================== 상태 관리 ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patterns": [p.to_dict() for p in self._patterns.values()],
            "preferences": self._preferences.to_dict(),
            "feedback": list(self._feedback),
        }

    def load_state(self):
        """저장소에서 상태 로드 (실패 시 빈 모델로 계속)"""
        try:
            blob = self.store.load_state(self.config.STATE_KEY)
        except Exception as e:
            logger.warning(f"[FeedbackLearner] 상태 로드 실패, 빈 모델로 시작: {e}")
            return
        if not blob:
            return

        try:
            patterns = {}
            for data in blob.get("patterns", []):
                learned = LearningPattern.from_dict(data)
                patterns[learned.signature] = learned
            preferences = UserPreferenceModel.from_dict(blob.get("preferences", {}))
            feedback = list(blob.get("feedback", []))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[FeedbackLearner] 상태 형식 오류, 빈 모델로 시작: {e}")
            return

        with self._lock:
            self._patterns = patterns
            self._preferences = preferences
            self._feedback = feedback
        logger.info(f"[FeedbackLearner] 상태 로드: 패턴 {len(patterns)}개, 피드백 {len(feedback)}건")

    def save_state(self) -> bool:
        """저장소에 상태 저장 (실패 시 경고만)"""
        try:
            with self._lock:
                self.store.save_state(self.config.STATE_KEY, self.to_dict())
            return True
        except Exception as e:
            logger.warning(f"[FeedbackLearner] 상태 저장 실패: {e}")
            return False

    def reset(self):
        """학습 상태 초기화"""
        with self._lock:
            self._patterns = {}
            self._preferences = UserPreferenceModel()
            self._feedback = []
            self.save_state()
        logger.info("[FeedbackLearner] 학습 상태 초기화")
