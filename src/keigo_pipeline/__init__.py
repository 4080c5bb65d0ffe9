"""
Keigo Pipeline - 丁寧語 변환 시스템

캐주얼/방언 일본어를 정중한 비즈니스 표현으로 변환하고
사용자 피드백으로 선호도를 학습

사용 예시:
    from keigo_pipeline import (
        # Engine
        ConversionOrchestrator,

        # Models
        ConversionOptions, ConversionResult, FeedbackInput,

        # Storage
        JsonStorage,

        # Learning
        FeedbackLearner,
    )

    orchestrator = ConversionOrchestrator(learner=FeedbackLearner(store=JsonStorage()))
    result = orchestrator.convert("アプデしといてくれる？", {"level": 2})
"""

# Models
from .models import (
    Intent,
    Urgency,
    Relationship,
    Situation,
    FormalityLevel,
    TimeContext,
    ContextDescriptor,
    Approach,
    ConversionCandidate,
    ConversionOptions,
    ConversionResult,
    Suggestion,
    FeedbackInput,
    LearningPattern,
    PatternKind,
    UserPreferenceModel,
)

# Converters
from .converters import (
    ContextAnalyzer,
    LexicalConverter,
    SentenceAssembler,
)

# Scoring
from .scoring import (
    QualityScorer,
    QualityReport,
)

# Learning
from .learning import FeedbackLearner

# Storage
from .storage import (
    StateStore,
    MemoryStorage,
    JsonStorage,
    StorageConfig,
)

# LLM
from .llm import (
    LLMBackend,
    LLMBackendAdapter,
    LLMFactory,
    LLMProvider,
    PromptBuilder,
    ResponseCache,
)

# Engine
from .engine import ConversionOrchestrator

# Exceptions
from .exceptions import (
    KeigoPipelineError,
    ConversionError,
    LLMBackendError,
    LLMTimeoutError,
    StorageError,
)

__all__ = [
    # Models - Context
    "Intent",
    "Urgency",
    "Relationship",
    "Situation",
    "FormalityLevel",
    "TimeContext",
    "ContextDescriptor",
    # Models - Conversion
    "Approach",
    "ConversionCandidate",
    "ConversionOptions",
    "ConversionResult",
    "Suggestion",
    # Models - Feedback
    "FeedbackInput",
    "LearningPattern",
    "PatternKind",
    "UserPreferenceModel",
    # Converters
    "ContextAnalyzer",
    "LexicalConverter",
    "SentenceAssembler",
    # Scoring
    "QualityScorer",
    "QualityReport",
    # Learning
    "FeedbackLearner",
    # Storage
    "StateStore",
    "MemoryStorage",
    "JsonStorage",
    "StorageConfig",
    # LLM
    "LLMBackend",
    "LLMBackendAdapter",
    "LLMFactory",
    "LLMProvider",
    "PromptBuilder",
    "ResponseCache",
    # Engine
    "ConversionOrchestrator",
    # Exceptions
    "KeigoPipelineError",
    "ConversionError",
    "LLMBackendError",
    "LLMTimeoutError",
    "StorageError",
]
