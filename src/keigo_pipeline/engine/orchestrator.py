"""
Conversion Orchestrator

전체 변환 흐름 제어

1. 컨텍스트 분석 (+ 옵션으로 관계/긴급도/상황 덮어쓰기)
2. 목표 레벨 결정
3. 후보 생성 (단어 수준 / 문장 생성 / 레벨 변형 7개 / 상황 최적화)
4. 후보 채점 → 최고점 선택 (preferred_approach가 있으면 우선)
5. 제안 병합, 이력 기록, 선호도 갱신

어떤 입력에도 예외를 던지지 않음. 실패 시 저신뢰 fallback 결과 반환.
LLM 백엔드가 있으면 convert_async에서 리파인 시도 후 실패 시 규칙 기반으로 복귀.
"""

import asyncio
import random
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Union

from loguru import logger

from ..config import ConversionConfig, LLMSettings
from ..converters import ContextAnalyzer, LexicalConverter, SentenceAssembler
from ..exceptions import ConversionError, LLMBackendError, LLMTimeoutError
from ..learning import FeedbackLearner
from ..llm import LLMBackend, PromptBuilder, ResponseCache
from ..models import (
    Relationship,
    Situation,
    Urgency,
    FormalityLevel,
    ContextDescriptor,
    Approach,
    ConversionCandidate,
    ConversionOptions,
    ConversionAnalysis,
    ConversionResult,
    ConversionRecord,
    FeedbackInput,
    Suggestion,
    MAX_LEVEL,
)
from ..scoring import QualityScorer, RefinementValidation, validate_refinement
from ..scoring.refinement_validator import ISSUE_MESSAGES


ENGINE_NAME = "enhanced-v2.0"
FALLBACK_ENGINE = "fallback"
LLM_ENGINE = "llm-refinement"

FALLBACK_SUFFIX = "をお願いします。"
FALLBACK_LEVEL = 2
FALLBACK_CONFIDENCE = 0.3
FALLBACK_MESSAGE = "システムエラーが発生しました。シンプルな変換を適用しました。"

# 후보별 기본 신뢰도
LEXICAL_CONFIDENCE = 0.75
SENTENCE_CONFIDENCE = 0.90
VARIATION_CONFIDENCE = 0.80
CONTEXT_CONFIDENCE = 0.85
LLM_CONFIDENCE = 0.80
MIN_LLM_CONFIDENCE = 0.1
INVALID_REFINEMENT_PENALTY = 0.8

APPROACH_BONUS = {
    Approach.SENTENCE_GENERATION: 10,
    Approach.CONTEXT_OPTIMIZED: 15,
}
LEVEL_PENALTY = 5
IMPROVEMENT_BONUS = 20
IMPROVEMENT_CHARS_PER_ISSUE = 20

IMPROVEMENT_MARKERS = ("お疲れ", "よろしく", "ありがとう", "すみません", "いつもお世話")
IMPROVEMENT_CASUAL_WORDS = ("アプデ", "バグ", "やって", "して", "マジで")


@dataclass
class ConversionPreferences:
    """이력 기반 선호도 스냅샷 (오케스트레이터 소유)"""
    default_level: int = 3
    preferred_approach: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_level": self.default_level,
            "preferred_approach": self.preferred_approach,
        }


class ConversionOrchestrator:
    """
    경어 변환 오케스트레이터

    사용 예시:
        orchestrator = ConversionOrchestrator()
        result = orchestrator.convert("アプデしといてくれる？", {"level": 2})
        print(result.converted)

        # LLM 리파인 (백엔드가 있을 때)
        result = await orchestrator.convert_async("バグった、どないしよ")

        # 피드백
        orchestrator.record_feedback({
            "original_text": result.original,
            "converted_text": result.converted,
            "user_rating": 5,
        })
    """

    def __init__(
        self,
        analyzer: Optional[ContextAnalyzer] = None,
        lexical: Optional[LexicalConverter] = None,
        assembler: Optional[SentenceAssembler] = None,
        scorer: Optional[QualityScorer] = None,
        learner: Optional[FeedbackLearner] = None,
        llm_backend: Optional[LLMBackend] = None,
        cache: Optional[ResponseCache] = None,
        config: Optional[ConversionConfig] = None,
        llm_settings: Optional[LLMSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            analyzer / lexical / assembler / scorer: 변환 컴포넌트 (없으면 기본값)
            learner: 피드백 학습기 (학습된 선호 레벨 참조)
            llm_backend: 리파인 백엔드 (없으면 규칙 기반만 사용)
            cache: LLM 응답 캐시
            config: 변환 설정
            llm_settings: LLM 호출 파라미터 (타임아웃, 토큰 수 등)
            rng: 문장 생성용 난수 (seed 고정 테스트용)
        """
        self.config = config or ConversionConfig()
        self.llm_settings = llm_settings or LLMSettings()

        self.analyzer = analyzer or ContextAnalyzer()
        self.lexical = lexical or LexicalConverter()
        self.assembler = assembler or SentenceAssembler(rng=rng)
        self.scorer = scorer or QualityScorer()
        self.learner = learner or FeedbackLearner()
        self.prompt_builder = PromptBuilder()

        self.llm_backend = llm_backend
        self.cache = cache or ResponseCache(
            max_size=self.llm_settings.CACHE_MAX_SIZE,
            ttl_seconds=self.llm_settings.CACHE_TTL_SECONDS,
        )

        self._lock = threading.RLock()
        self._history: Deque[ConversionRecord] = deque(maxlen=self.config.HISTORY_LIMIT)
        self.preferences = ConversionPreferences(default_level=self.config.DEFAULT_LEVEL)

        logger.info(
            f"[ConversionOrchestrator] 초기화 완료 "
            f"(LLM 백엔드: {'사용' if llm_backend else '미사용'})"
        )

    # ==================== 동기 변환 ====================

    def convert(
        self,
        text: str,
        options: Union[ConversionOptions, Dict[str, Any], None] = None,
    ) -> ConversionResult:
        """
        규칙 기반 변환

        Args:
            text: 원문
            options: ConversionOptions 또는 dict
                     (level, preferred_approach, relationship, urgency, situation)

        Returns:
            ConversionResult (실패 시 fallback 결과)
        """
        start = time.perf_counter()
        text = text if isinstance(text, str) else ""

        if not text.strip():
            return self._fallback(text, "empty input", self._safe_context(text))

        try:
            options = ConversionOptions.coerce(options)
            context = self._analyze(text, options)
            target_level = self.resolve_level(context, options)

            candidates = self.generate_candidates(text, context, target_level)
            selected = self.select_candidate(candidates, context, target_level, options)
            if not selected.text.strip():
                raise ConversionError("選択された変換結果が空です")

            quality = self.scorer.score(text, selected.text, self._scoring_options(context, target_level))
            suggestions = self.build_suggestions(text, selected, context, options)
            self._record(text, selected, options)

            return ConversionResult(
                original=text,
                converted=selected.text,
                context=context,
                level=selected.level,
                suggestions=suggestions,
                analysis=ConversionAnalysis(
                    confidence=selected.confidence,
                    improvements=self.analyze_improvements(text, selected.text),
                    processing_time_ms=(time.perf_counter() - start) * 1000,
                    detected_issues=context.needs_improvement.to_dict(),
                    quality=quality.to_dict(),
                ),
                metadata={
                    "candidates": len(candidates),
                    "timestamp": datetime.now().isoformat(),
                    "engine": ENGINE_NAME,
                    "approach": selected.approach,
                    "target_level": target_level,
                },
                variations=candidates,
            )
        except Exception as e:
            logger.error(f"[ConversionOrchestrator] 변환 실패: {e}")
            return self._fallback(text, str(e), self._safe_context(text))

    def _analyze(self, text: str, options: ConversionOptions) -> ContextDescriptor:
        context = self.analyzer.analyze(text)
        return context.with_overrides(
            relationship=options.relationship,
            urgency=options.urgency,
            situation=options.situation,
        )

    def resolve_level(self, context: ContextDescriptor, options: ConversionOptions) -> int:
        """
        목표 레벨 결정

        지정 레벨(1~5)이 있으면 그대로. 없으면 3에서 시작해 규칙에 따라 올리기만 함
        """
        explicit = options.explicit_level()
        if explicit is not None:
            return explicit

        level = self.config.DEFAULT_LEVEL
        if context.relationship == Relationship.SUPERIOR:
            level = max(level, 4)
        elif context.relationship == Relationship.SUBORDINATE:
            level = max(level, 2)
        if context.urgency == Urgency.URGENT:
            level = max(level, 3)
        if context.situation == Situation.BUSINESS:
            level = max(level, 3)
        if context.formality_level == FormalityLevel.VERY_CASUAL:
            level = max(level, 4)

        level = max(level, self.learner.preferred_level)
        return min(MAX_LEVEL, level)

    def generate_candidates(
        self,
        text: str,
        context: ContextDescriptor,
        target_level: int,
    ) -> List[ConversionCandidate]:
        """후보 생성 (생성 순서 = 동점 시 우선순위)"""
        lexical = self.lexical.convert(text, context)
        candidates = [
            ConversionCandidate(
                approach=Approach.WORD_LEVEL,
                text=lexical.text,
                level=target_level,
                confidence=LEXICAL_CONFIDENCE,
                description="単語・フレーズレベルの丁寧語変換",
                details=lexical.conversions,
            ),
            ConversionCandidate(
                approach=Approach.SENTENCE_GENERATION,
                text=self.assembler.generate(text, context, target_level),
                level=target_level,
                confidence=SENTENCE_CONFIDENCE,
                description="フル文章再構築による自然な丁寧語",
            ),
        ]

        for variation in self.assembler.generate_variations(text, context, target_level):
            candidates.append(ConversionCandidate(
                approach=Approach.LEVEL_VARIATION,
                text=variation.text,
                level=variation.level,
                confidence=VARIATION_CONFIDENCE,
                description=variation.description,
            ))

        if context.situation != Situation.GENERAL:
            candidates.append(ConversionCandidate(
                approach=Approach.CONTEXT_OPTIMIZED,
                text=self.assembler.generate(text, context, target_level),
                level=target_level,
                confidence=CONTEXT_CONFIDENCE,
                description=f"{context.situation.value}コンテキスト最適化版",
            ))
        return candidates

    def score_candidate(
        self,
        candidate: ConversionCandidate,
        context: ContextDescriptor,
        target_level: int,
    ) -> float:
        score = candidate.confidence * 100
        score += APPROACH_BONUS.get(candidate.approach, 0)
        score -= abs(candidate.level - target_level) * LEVEL_PENALTY

        needs = context.needs_improvement
        if needs.needs_improvement and len(candidate.text) > len(needs.issues) * IMPROVEMENT_CHARS_PER_ISSUE:
            score += IMPROVEMENT_BONUS
        return score

    def select_candidate(
        self,
        candidates: List[ConversionCandidate],
        context: ContextDescriptor,
        target_level: int,
        options: ConversionOptions,
    ) -> ConversionCandidate:
        for candidate in candidates:
            candidate.score = self.score_candidate(candidate, context, target_level)

        if options.preferred_approach:
            for candidate in candidates:
                if candidate.approach == options.preferred_approach:
                    return candidate

        # max()는 동점이면 앞쪽 후보를 유지
        return max(candidates, key=lambda c: c.score)

    # ==================== 제안 / 개선점 ====================

    def build_suggestions(
        self,
        text: str,
        selected: ConversionCandidate,
        context: ContextDescriptor,
        options: ConversionOptions,
    ) -> List[Suggestion]:
        suggestions = [
            Suggestion(type="context", message=message)
            for message in self.analyzer.suggestions(context)
        ]
        suggestions += self.lexical.suggestions(selected.text, context)

        quality = self.assembler.analyze_quality(text, selected.text, context)
        suggestions += [Suggestion(type="quality", message=m) for m in quality["suggestions"]]

        if selected.level < 4 and context.relationship == Relationship.SUPERIOR:
            suggestions.append(Suggestion(
                type="level",
                message="上司への連絡の場合、レベル4以上をお勧めします",
                action="increase_level",
            ))

        for learned in self.learner.suggestions_for(text, {"situation": context.situation.value}):
            suggestions.append(Suggestion(type="learning", message=learned["message"]))
        return suggestions

    @staticmethod
    def analyze_improvements(original: str, converted: str) -> List[str]:
        improvements = []
        if len(converted) > len(original) * 1.3:
            improvements.append("文章が十分に丁寧な長さになりました")

        added = [m for m in IMPROVEMENT_MARKERS if m not in original and m in converted]
        if added:
            improvements.append(f"丁寧な表現を追加: {', '.join(added)}")

        replaced = [w for w in IMPROVEMENT_CASUAL_WORDS if w in original and w not in converted]
        if replaced:
            improvements.append(f"カジュアルな表現を改善: {len(replaced)}個の単語")
        return improvements

    # ==================== 이력 / 선호도 ====================

    def _record(self, text: str, selected: ConversionCandidate, options: ConversionOptions):
        record = ConversionRecord(
            original=text,
            converted=selected.text,
            level=selected.level,
            approach=selected.approach,
            confidence=selected.confidence,
            options=options.to_dict(),
        )
        with self._lock:
            self._history.append(record)
            self._update_preferences()

    def _update_preferences(self):
        """최근 5건 평균 레벨, 최근 10건 최빈 approach"""
        if len(self._history) < self.config.LEVEL_WINDOW:
            return

        history = list(self._history)
        recent_levels = [r.level for r in history[-self.config.LEVEL_WINDOW:]]
        self.preferences.default_level = int(
            sum(recent_levels) / len(recent_levels) + 0.5
        )

        recent_approaches = [r.approach for r in history[-self.config.APPROACH_WINDOW:]]
        self.preferences.preferred_approach = Counter(recent_approaches).most_common(1)[0][0]

    @property
    def history(self) -> List[ConversionRecord]:
        with self._lock:
            return list(self._history)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            history = list(self._history)
            preferences = self.preferences.to_dict()

        approaches = Counter(r.approach for r in history)
        return {
            "total_conversions": len(history),
            "average_level": sum(r.level for r in history) / len(history) if history else 0,
            "most_used_approach": approaches.most_common(1)[0][0] if approaches else None,
            "preferences": preferences,
            "learned_level": self.learner.preferred_level,
            "recent_conversions": [r.to_dict() for r in history[-5:]],
        }

    # ==================== 배치 ====================

    def convert_batch(
        self,
        texts: List[str],
        options: Union[ConversionOptions, Dict[str, Any], None] = None,
    ) -> Dict[str, Any]:
        results = [self.convert(text, options) for text in texts]
        successful = [r for r in results if not r.is_fallback]
        return {
            "results": results,
            "summary": {
                "total": len(texts),
                "successful": len(successful),
                "average_confidence": (
                    sum(r.analysis.confidence for r in results) / len(results) if results else 0
                ),
            },
        }

    # ==================== LLM 리파인 ====================

    async def convert_async(
        self,
        text: str,
        options: Union[ConversionOptions, Dict[str, Any], None] = None,
        use_llm: bool = True,
    ) -> ConversionResult:
        """
        LLM 리파인 변환

        백엔드가 없거나 실패/타임아웃/빈 응답이면 규칙 기반 convert() 결과를 반환하고
        metadata["error"]에 사유를 남김
        """
        text = text if isinstance(text, str) else ""
        if not use_llm or self.llm_backend is None or not text.strip():
            return self.convert(text, options)

        start = time.perf_counter()
        try:
            options = ConversionOptions.coerce(options)
            context = self._analyze(text, options)
            target_level = self.resolve_level(context, options)
            prompt_options = {
                "level": target_level,
                "context": context.situation.value,
                "relationship": context.relationship.value,
                "urgency": context.urgency.value,
            }
            converted, cached = await self._refine(text, prompt_options)
        except Exception as e:
            logger.warning(f"[ConversionOrchestrator] LLM 리파인 실패, 규칙 기반으로 전환: {e}")
            return self._llm_fallback(text, options, e)

        try:
            return self._build_refined_result(text, converted, cached, context, target_level, options, start)
        except Exception as e:
            logger.error(f"[ConversionOrchestrator] LLM 결과 처리 실패, 규칙 기반으로 전환: {e}")
            return self._llm_fallback(text, options, e)

    def _llm_fallback(self, text: str, options: Any, error: Exception) -> ConversionResult:
        result = self.convert(text, options)
        result.metadata["error"] = str(error) or error.__class__.__name__
        return result

    def _build_refined_result(
        self,
        text: str,
        converted: str,
        cached: bool,
        context: ContextDescriptor,
        target_level: int,
        options: ConversionOptions,
        start: float,
    ) -> ConversionResult:
        """리파인 결과 채점 / 검증 / 기록"""
        quality = self.scorer.score(text, converted, self._scoring_options(context, target_level))
        validation = validate_refinement(text, converted, target_level)
        if not validation.is_valid:
            logger.info(f"[ConversionOrchestrator] LLM 결과 검증 실패: {validation.issues}")

        confidence = LLM_CONFIDENCE * quality.overall
        if not validation.is_valid:
            confidence *= INVALID_REFINEMENT_PENALTY
        confidence = min(1.0, max(MIN_LLM_CONFIDENCE, confidence))

        selected = ConversionCandidate(
            approach=Approach.LLM_REFINEMENT,
            text=converted,
            level=target_level,
            confidence=confidence,
            description="LLMによる自然な丁寧語変換",
            score=quality.overall * 100,
        )
        suggestions = self.lexical.suggestions(converted, context)
        suggestions.extend(self._refinement_suggestions(quality.axis_scores, validation, context, target_level))
        self._record(text, selected, options)

        return ConversionResult(
            original=text,
            converted=converted,
            context=context,
            level=target_level,
            suggestions=suggestions,
            analysis=ConversionAnalysis(
                confidence=selected.confidence,
                improvements=self.analyze_improvements(text, converted),
                processing_time_ms=(time.perf_counter() - start) * 1000,
                detected_issues=context.needs_improvement.to_dict(),
                quality=quality.to_dict(),
            ),
            metadata={
                "candidates": 1,
                "timestamp": datetime.now().isoformat(),
                "engine": LLM_ENGINE,
                "approach": selected.approach,
                "target_level": target_level,
                "cached": cached,
                "validation": validation.to_dict(),
            },
            variations=[selected],
        )

    @staticmethod
    def _refinement_suggestions(
        axis_scores: Dict[str, float],
        validation: RefinementValidation,
        context: ContextDescriptor,
        level: int,
    ) -> List[Suggestion]:
        suggestions = []
        if axis_scores.get("naturalness", 1.0) < 0.7:
            suggestions.append(Suggestion(type="naturalness", message="表現をより自然にできる可能性があります"))
        if axis_scores.get("intent_preservation", 1.0) < 0.8:
            suggestions.append(Suggestion(type="intent", message="元の意図が十分に保持されていない可能性があります"))
        if level < 3 and context.relationship == Relationship.SUPERIOR:
            suggestions.append(Suggestion(type="level", message="上司向けの場合、より丁寧なレベルをお勧めします"))
        for issue, correction in zip(validation.issues, validation.corrections):
            suggestions.append(Suggestion(
                type="validation",
                message=ISSUE_MESSAGES[issue],
                action=correction,
            ))
        return suggestions

    async def _refine(self, text: str, prompt_options: Dict[str, Any]):
        """(정리된 변환문, 캐시 사용 여부)"""
        key = self.cache.key(text, prompt_options)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("[ConversionOrchestrator] LLM 캐시 사용")
            return cached, True

        prompt = self.prompt_builder.build(text, prompt_options)
        timeout_ms = self.llm_settings.TIMEOUT_MS
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self.llm_backend.generate,
                    prompt,
                    self.llm_settings.MAX_TOKENS,
                    self.llm_settings.TEMPERATURE,
                    timeout_ms,
                ),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(f"LLM 응답 시간 초과 ({timeout_ms}ms)") from e

        converted = self.prompt_builder.clean_output(raw)
        if not converted:
            raise LLMBackendError("LLM 응답이 비어 있습니다")

        self.cache.set(key, converted)
        return converted, False

    # ==================== 피드백 ====================

    def record_feedback(self, payload: Union[FeedbackInput, Dict[str, Any]]) -> str:
        """FeedbackLearner.record_feedback 위임"""
        return self.learner.record_feedback(payload)

    # ==================== 내부 헬퍼 ====================

    @staticmethod
    def _scoring_options(context: ContextDescriptor, level: int) -> Dict[str, Any]:
        return {
            "level": level,
            "context": context.situation.value,
            "relationship": context.relationship.value,
        }

    def _safe_context(self, text: str) -> ContextDescriptor:
        try:
            return self.analyzer.analyze(text)
        except Exception as e:
            logger.debug(f"[ConversionOrchestrator] fallback 컨텍스트 기본값 사용: {e}")
            return ContextDescriptor()

    def _fallback(self, text: str, error: str, context: ContextDescriptor) -> ConversionResult:
        logger.warning(f"[ConversionOrchestrator] fallback 적용: {error}")
        return ConversionResult(
            original=text,
            converted=text + FALLBACK_SUFFIX,
            context=context,
            level=FALLBACK_LEVEL,
            suggestions=[Suggestion(type="error", message=FALLBACK_MESSAGE)],
            analysis=ConversionAnalysis(
                confidence=FALLBACK_CONFIDENCE,
                detected_issues={"needs_improvement": True, "issues": ["processing_error"]},
            ),
            metadata={
                "candidates": 1,
                "timestamp": datetime.now().isoformat(),
                "engine": FALLBACK_ENGINE,
                "error": error,
            },
        )
