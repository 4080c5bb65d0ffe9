"""
피드백 / 학습 데이터 모델

FeedbackLearner가 소유하고 갱신함.
직렬화는 to_dict / from_dict (StateStore에 불투명한 blob으로 저장)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Dict, Any, Optional

from .context import ContextDescriptor


class PatternKind(Enum):
    """학습 패턴 종류"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    CORRECTION = "correction"


@dataclass
class LearningPattern:
    """
    학습 패턴

    signature 기준으로 최초 관측 시 생성, 이후에는 갱신만 함 (교체 X).
    confidence는 occurrences에 따라 단조 증가 (상한에서 포화)
    """
    kind: PatternKind
    signature: str
    pattern_type: str                       # "excessive_politeness", "word_substitution" 등
    pattern: str                            # 관측된 표면 패턴 (교정이면 from)
    replacement: Optional[str] = None       # 교정 패턴의 to
    occurrences: int = 0
    contexts: List[Dict[str, Any]] = field(default_factory=list)
    confidence: float = 0.0
    first_seen: str = field(default_factory=lambda: datetime.now().isoformat())
    last_seen: str = field(default_factory=lambda: datetime.now().isoformat())

    def observe(self, context: Optional[Dict[str, Any]], step: float, cap: float):
        """
        새 관측 반영

        Args:
            context: 관측 당시 컨텍스트 (dict)
            step: occurrences 1회당 신뢰도 증가폭
            cap: 신뢰도 상한
        """
        self.occurrences += 1
        self.contexts.append(context or {})
        # 이전 값보다 내려가지 않음
        self.confidence = max(self.confidence, min(cap, self.occurrences * step))
        self.confidence = max(0.0, min(1.0, self.confidence))
        self.last_seen = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "signature": self.signature,
            "pattern_type": self.pattern_type,
            "pattern": self.pattern,
            "replacement": self.replacement,
            "occurrences": self.occurrences,
            "contexts": self.contexts,
            "confidence": self.confidence,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearningPattern":
        return cls(
            kind=PatternKind(data["kind"]),
            signature=data["signature"],
            pattern_type=data.get("pattern_type", ""),
            pattern=data.get("pattern", ""),
            replacement=data.get("replacement"),
            occurrences=data.get("occurrences", 0),
            contexts=data.get("contexts", []),
            confidence=data.get("confidence", 0.0),
            first_seen=data.get("first_seen", datetime.now().isoformat()),
            last_seen=data.get("last_seen", datetime.now().isoformat()),
        )


@dataclass
class ContextPreference:
    """상황별 평가 카운터"""
    success_count: int = 0
    problem_count: int = 0

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.problem_count
        return self.success_count / total if total else 0.0

    def to_dict(self) -> Dict[str, int]:
        return {
            "success_count": self.success_count,
            "problem_count": self.problem_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "ContextPreference":
        return cls(
            success_count=data.get("success_count", 0),
            problem_count=data.get("problem_count", 0),
        )


@dataclass
class UserPreferenceModel:
    """
    사용자 선호 모델

    FeedbackLearner만 변경. 나머지 컴포넌트는 읽기만 함
    """
    preferred_level: int = 3
    context_preferences: Dict[str, ContextPreference] = field(default_factory=dict)
    avoided_patterns: List[str] = field(default_factory=list)

    def context_preference(self, situation: str) -> ContextPreference:
        """상황별 카운터 (없으면 생성)"""
        if situation not in self.context_preferences:
            self.context_preferences[situation] = ContextPreference()
        return self.context_preferences[situation]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferred_level": self.preferred_level,
            "context_preferences": {
                k: v.to_dict() for k, v in self.context_preferences.items()
            },
            "avoided_patterns": self.avoided_patterns,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPreferenceModel":
        return cls(
            preferred_level=data.get("preferred_level", 3),
            context_preferences={
                k: ContextPreference.from_dict(v)
                for k, v in data.get("context_preferences", {}).items()
            },
            avoided_patterns=data.get("avoided_patterns", []),
        )


@dataclass
class FeedbackInput:
    """
    피드백 입력 데이터

    user_rating: 1~5 (2 이하 = 부정, 4 이상 = 긍정)
    user_correction: 사용자가 직접 고친 문장 (선택)
    """
    original_text: str
    converted_text: str
    user_rating: int
    user_correction: Optional[str] = None
    context: Optional[ContextDescriptor] = None
    options: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        """검증"""
        if isinstance(self.user_rating, bool) or not isinstance(self.user_rating, int):
            raise ValueError("user_rating은 1~5 정수여야 합니다")
        if not 1 <= self.user_rating <= 5:
            raise ValueError("user_rating은 1~5 범위여야 합니다")
        self.original_text = self.original_text or ""
        self.converted_text = self.converted_text or ""

    @property
    def situation(self) -> str:
        return self.context.situation.value if self.context else "general"

    @property
    def level(self) -> int:
        level = self.options.get("level")
        return level if isinstance(level, int) and 1 <= level <= 5 else 3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedbackInput":
        """딕셔너리에서 생성 (camelCase 키도 허용)"""
        context = data.get("context")
        if isinstance(context, dict):
            context = ContextDescriptor.from_dict(context)
        return cls(
            original_text=data.get("original_text", data.get("originalText", "")),
            converted_text=data.get("converted_text", data.get("convertedText", "")),
            user_rating=data.get("user_rating", data.get("userRating")),
            user_correction=data.get("user_correction", data.get("userCorrection")),
            context=context,
            options=data.get("options") or {},
            timestamp=data.get("timestamp", datetime.now().isoformat()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "converted_text": self.converted_text,
            "user_rating": self.user_rating,
            "user_correction": self.user_correction,
            "context": self.context.to_dict() if self.context else None,
            "options": self.options,
            "timestamp": self.timestamp,
        }
