"""
케이고 파이프라인 데이터 모델

컨텍스트 분류, 변환 후보/결과, 피드백 학습 상태
"""

from .context import (
    Intent,
    Urgency,
    Relationship,
    Situation,
    FormalityLevel,
    TimeContext,
    Severity,
    ImprovementIssue,
    ImprovementNeeds,
    ContextDescriptor,
)

from .conversion import (
    MIN_LEVEL,
    MAX_LEVEL,
    LEVEL_DESCRIPTIONS,
    LEVEL_CHARACTERISTICS,
    clamp_level,
    Approach,
    ConversionLogEntry,
    ConversionCandidate,
    ConversionOptions,
    Suggestion,
    ConversionAnalysis,
    ConversionResult,
    ConversionRecord,
)

from .feedback import (
    PatternKind,
    LearningPattern,
    ContextPreference,
    UserPreferenceModel,
    FeedbackInput,
)

__all__ = [
    # context.py
    "Intent",
    "Urgency",
    "Relationship",
    "Situation",
    "FormalityLevel",
    "TimeContext",
    "Severity",
    "ImprovementIssue",
    "ImprovementNeeds",
    "ContextDescriptor",
    # conversion.py
    "MIN_LEVEL",
    "MAX_LEVEL",
    "LEVEL_DESCRIPTIONS",
    "LEVEL_CHARACTERISTICS",
    "clamp_level",
    "Approach",
    "ConversionLogEntry",
    "ConversionCandidate",
    "ConversionOptions",
    "Suggestion",
    "ConversionAnalysis",
    "ConversionResult",
    "ConversionRecord",
    # feedback.py
    "PatternKind",
    "LearningPattern",
    "ContextPreference",
    "UserPreferenceModel",
    "FeedbackInput",
]
