"""
컨텍스트 디스크립터 데이터 모델

ContextAnalyzer가 입력 문장마다 생성하는 분류 결과.
생성 이후에는 변경하지 않음 (frozen). 오버라이드가 필요하면 새 객체를 만듦.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Any, Optional, FrozenSet, Tuple


class Intent(Enum):
    """발화 의도 (열거 순서 = 동점 시 우선순위)"""
    REQUEST = "request"
    QUESTION = "question"
    REPORT = "report"
    APOLOGY = "apology"
    GREETING = "greeting"
    COMPLAINT = "complaint"
    APPRECIATION = "appreciation"
    GENERAL = "general"


class Urgency(Enum):
    """긴급도"""
    URGENT = "urgent"
    NORMAL = "normal"
    RELAXED = "relaxed"


class Relationship(Enum):
    """상대와의 관계"""
    SUPERIOR = "superior"
    COLLEAGUE = "colleague"
    SUBORDINATE = "subordinate"
    CUSTOMER = "customer"
    UNKNOWN = "unknown"


class Situation(Enum):
    """상황 (비즈니스/기술/캐주얼)"""
    BUSINESS = "business"
    TECHNICAL = "technical"
    CASUAL = "casual"
    GENERAL = "general"


class FormalityLevel(Enum):
    """현재 문장의 격식 수준"""
    VERY_FORMAL = "very-formal"
    FORMAL = "formal"
    NEUTRAL = "neutral"
    CASUAL = "casual"
    VERY_CASUAL = "very-casual"


class TimeContext(Enum):
    """시간대 (인사말 선택용)"""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    GENERAL = "general"


class Severity(Enum):
    """개선 필요도 (이슈 0개 = NONE)"""
    NONE = "none"
    MEDIUM = "medium"
    HIGH = "high"


class ImprovementIssue(Enum):
    """개선 체크리스트 항목"""
    CASUAL_LANGUAGE = "casual_language"
    LACKS_POLITENESS_MARKERS = "lacks_politeness_markers"
    TOO_BRIEF = "too_brief"
    TOO_DIRECT = "too_direct"


@dataclass(frozen=True)
class ImprovementNeeds:
    """개선 필요 여부 체크 결과"""
    needs_improvement: bool = False
    issues: FrozenSet[ImprovementIssue] = field(default_factory=frozenset)
    severity: Severity = Severity.NONE

    @classmethod
    def from_issues(cls, issues) -> "ImprovementNeeds":
        """이슈 목록에서 생성 (1~2개 = MEDIUM, 3개 이상 = HIGH)"""
        issues = frozenset(issues)
        if len(issues) >= 3:
            severity = Severity.HIGH
        elif issues:
            severity = Severity.MEDIUM
        else:
            severity = Severity.NONE
        return cls(needs_improvement=bool(issues), issues=issues, severity=severity)

    def has(self, issue: ImprovementIssue) -> bool:
        return issue in self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "needs_improvement": self.needs_improvement,
            # 체크리스트 순서로 정렬
            "issues": [i.value for i in ImprovementIssue if i in self.issues],
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImprovementNeeds":
        return cls.from_issues(ImprovementIssue(i) for i in data.get("issues", []))


@dataclass(frozen=True)
class ContextDescriptor:
    """
    입력 문장의 컨텍스트 분류 결과

    모든 하위 컴포넌트는 읽기 전용 값 객체로 취급
    """
    intent: Intent = Intent.GENERAL
    urgency: Urgency = Urgency.NORMAL
    relationship: Relationship = Relationship.UNKNOWN
    situation: Situation = Situation.GENERAL
    formality_level: FormalityLevel = FormalityLevel.NEUTRAL
    time_context: TimeContext = TimeContext.GENERAL
    needs_improvement: ImprovementNeeds = field(default_factory=ImprovementNeeds)
    casual_words: Tuple[str, ...] = ()

    def with_overrides(
        self,
        relationship: Optional[Any] = None,
        urgency: Optional[Any] = None,
        situation: Optional[Any] = None,
    ) -> "ContextDescriptor":
        """
        일부 축을 고정한 새 디스크립터 반환

        Args:
            relationship / urgency / situation: Enum 또는 문자열 값. None이면 유지

        Returns:
            새 ContextDescriptor (원본은 그대로)
        """
        changes = {}
        if relationship is not None:
            changes["relationship"] = Relationship(_enum_value(relationship))
        if urgency is not None:
            changes["urgency"] = Urgency(_enum_value(urgency))
        if situation is not None:
            changes["situation"] = Situation(_enum_value(situation))
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "urgency": self.urgency.value,
            "relationship": self.relationship.value,
            "situation": self.situation.value,
            "formality_level": self.formality_level.value,
            "time_context": self.time_context.value,
            "needs_improvement": self.needs_improvement.to_dict(),
            "casual_words": list(self.casual_words),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextDescriptor":
        return cls(
            intent=Intent(data.get("intent", "general")),
            urgency=Urgency(data.get("urgency", "normal")),
            relationship=Relationship(data.get("relationship", "unknown")),
            situation=Situation(data.get("situation", "general")),
            formality_level=FormalityLevel(data.get("formality_level", "neutral")),
            time_context=TimeContext(data.get("time_context", "general")),
            needs_improvement=ImprovementNeeds.from_dict(data.get("needs_improvement", {})),
            casual_words=tuple(data.get("casual_words", [])),
        )


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value
