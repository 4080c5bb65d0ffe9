"""
변환 관련 데이터 모델

ConversionCandidate는 변환 1회마다 만들어지고 저장되지 않음.
ConversionResult는 호출자에게 반환되는 최종 형태.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional, Union

from .context import ContextDescriptor


MIN_LEVEL = 1
MAX_LEVEL = 5

LEVEL_DESCRIPTIONS: Dict[int, str] = {
    1: "基本的な丁寧語",
    2: "標準的な敬語",
    3: "丁寧で気遣いのある表現",
    4: "非常に丁寧で配慮深い表現",
    5: "最高レベルの敬語と絵文字付き",
}

LEVEL_CHARACTERISTICS: Dict[int, List[str]] = {
    1: ["です・ます調", "基本的な敬語"],
    2: ["クッション言葉", "より丁寧な表現"],
    3: ["挨拶付き", "配慮表現", "適切な締め"],
    4: ["高度な敬語", "追加の気遣い", "絵文字"],
    5: ["最高敬語", "複数の配慮表現", "感情豊かな絵文字"],
}


def clamp_level(level: int) -> int:
    """정중함 레벨을 [1, 5]로 고정"""
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


class Approach:
    """변환 후보 생성 방식"""
    WORD_LEVEL = "word-level"
    SENTENCE_GENERATION = "sentence-generation"
    LEVEL_VARIATION = "level-variation"
    CONTEXT_OPTIMIZED = "context-optimized"
    LLM_REFINEMENT = "llm-refinement"
    FALLBACK = "fallback"


@dataclass
class ConversionLogEntry:
    """LexicalConverter 치환 기록 (누락 없이 모두 남김)"""
    type: str                       # "word", "phrase", "pattern"
    original: str
    converted: str
    count: int
    reason: str
    context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "original": self.original,
            "converted": self.converted,
            "count": self.count,
            "reason": self.reason,
        }
        if self.context:
            result["context"] = self.context
        return result


@dataclass
class ConversionCandidate:
    """변환 후보 1개"""
    approach: str
    text: str
    level: int
    confidence: float
    description: str = ""
    details: List[ConversionLogEntry] = field(default_factory=list)
    score: Optional[float] = None   # 오케스트레이터가 채점 후 기록

    def __post_init__(self):
        self.level = clamp_level(self.level)
        self.confidence = max(0.0, min(1.0, self.confidence))

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "approach": self.approach,
            "text": self.text,
            "level": self.level,
            "confidence": self.confidence,
            "description": self.description,
        }
        if self.details:
            result["details"] = [d.to_dict() for d in self.details]
        if self.score is not None:
            result["score"] = self.score
        return result


@dataclass
class ConversionOptions:
    """
    변환 옵션

    level을 지정하면 자동 레벨 결정보다 우선.
    relationship/urgency/situation은 분석 결과를 덮어씀.
    """
    level: Optional[int] = None
    preferred_approach: Optional[str] = None
    relationship: Optional[str] = None
    urgency: Optional[str] = None
    situation: Optional[str] = None

    @classmethod
    def coerce(cls, options: Union["ConversionOptions", Dict[str, Any], None]) -> "ConversionOptions":
        """dict / None / ConversionOptions 모두 허용"""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls(
            level=options.get("level"),
            preferred_approach=options.get("preferred_approach") or options.get("preferredApproach"),
            relationship=options.get("relationship"),
            urgency=options.get("urgency"),
            situation=options.get("situation"),
        )

    def explicit_level(self) -> Optional[int]:
        """1~5 범위의 정수일 때만 유효한 지정 레벨"""
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            return None
        if MIN_LEVEL <= self.level <= MAX_LEVEL:
            return self.level
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in {
            "level": self.level,
            "preferred_approach": self.preferred_approach,
            "relationship": self.relationship,
            "urgency": self.urgency,
            "situation": self.situation,
        }.items() if v is not None}


@dataclass
class Suggestion:
    """개선 제안"""
    type: str                       # "context", "improvement", "tone", "urgency", "relationship", "quality", "level", "learning", "error"
    message: str
    examples: List[str] = field(default_factory=list)
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"type": self.type, "message": self.message}
        if self.examples:
            result["examples"] = self.examples
        if self.action:
            result["action"] = self.action
        return result


@dataclass
class ConversionAnalysis:
    """변환 분석 정보"""
    confidence: float
    improvements: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    detected_issues: Dict[str, Any] = field(default_factory=dict)
    quality: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "confidence": self.confidence,
            "improvements": self.improvements,
            "processing_time_ms": self.processing_time_ms,
            "detected_issues": self.detected_issues,
        }
        if self.quality is not None:
            result["quality"] = self.quality
        return result


@dataclass
class ConversionResult:
    """
    변환 최종 결과

    convert()는 어떤 입력에도 이 형태를 반환 (예외 없음)
    """
    original: str
    converted: str
    context: ContextDescriptor
    level: int
    suggestions: List[Suggestion] = field(default_factory=list)
    analysis: ConversionAnalysis = field(default_factory=lambda: ConversionAnalysis(confidence=0.0))
    metadata: Dict[str, Any] = field(default_factory=dict)
    variations: List[ConversionCandidate] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.metadata.get("engine") == "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original,
            "converted": self.converted,
            "context": self.context.to_dict(),
            "level": self.level,
            "variations": [v.to_dict() for v in self.variations],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "analysis": self.analysis.to_dict(),
            "metadata": self.metadata,
        }


@dataclass
class ConversionRecord:
    """변환 이력 엔트리 (최근 100건 보관)"""
    original: str
    converted: str
    level: int
    approach: str
    confidence: float
    options: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "original": self.original,
            "converted": self.converted,
            "level": self.level,
            "approach": self.approach,
            "confidence": self.confidence,
            "options": self.options,
        }
