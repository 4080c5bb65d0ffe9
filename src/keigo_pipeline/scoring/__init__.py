"""
변환 품질 평가
"""

from .quality_scorer import (
    QualityScorer,
    QualityReport,
    AxisResult,
    NaturalnessEvaluator,
    IntentPreservationEvaluator,
    AppropriatenessEvaluator,
    CompletenessEvaluator,
    BENCHMARK_PAIRS,
    WEIGHTS,
    grade,
)
from .refinement_validator import (
    RefinementValidation,
    validate_refinement,
    check_politeness_level,
    is_over_polite,
)

__all__ = [
    "QualityScorer",
    "QualityReport",
    "AxisResult",
    "NaturalnessEvaluator",
    "IntentPreservationEvaluator",
    "AppropriatenessEvaluator",
    "CompletenessEvaluator",
    "BENCHMARK_PAIRS",
    "WEIGHTS",
    "grade",
    "RefinementValidation",
    "validate_refinement",
    "check_politeness_level",
    "is_over_polite",
]
