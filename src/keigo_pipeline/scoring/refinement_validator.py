"""
Refinement Validator

LLM 리파인 결과 검증

1. 길이 이상 (원문 대비 3배 초과 / 0.5배 미만)
2. 목표 레벨의 정중 표현 누락
3. 과잉 경어 (쿠션/사과 표현 중복)

검증 실패 시 신뢰도 감점 + 수정 제안 생성은 오케스트레이터 담당
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Pattern

from ..models import clamp_level


MAX_LENGTH_RATIO = 3.0
MIN_LENGTH_RATIO = 0.5

# 레벨별 필수 표현 (하나 이상 포함되어야 함)
POLITENESS_MARKERS: Dict[int, Pattern] = {
    1: re.compile(r"です|ます"),
    2: re.compile(r"いただけ|お願い|恐縮|すみません"),
    3: re.compile(r"いただけます|恐れ入り|申し訳|よろしく"),
    4: re.compile(r"いただけますでしょうか|恐縮です|[\U0001F600-\U0001F64F]"),
    5: re.compile(r"申し上げ|いたします|ございます|恐縮に存じ"),
}

OVER_POLITE_PATTERNS = (
    re.compile(r"恐れ入ります.*恐縮です.*申し訳"),
    re.compile(r"いただけますでしょうか.*お願いします.*よろしく"),
    re.compile(r"ございます.*でございます.*いたします"),
)

ISSUE_CORRECTIONS = {
    "length_anomaly": "check_content_preservation",
    "inadequate_politeness": "adjust_politeness_level",
    "over_polite": "reduce_excessive_politeness",
}

ISSUE_MESSAGES = {
    "length_anomaly": "変換後の長さが原文と大きく異なります",
    "inadequate_politeness": "指定レベルの丁寧表現が不足しています",
    "over_polite": "丁寧表現が重複して過剰になっています",
}


@dataclass
class RefinementValidation:
    """검증 결과"""
    is_valid: bool = True
    issues: List[str] = field(default_factory=list)
    corrections: List[str] = field(default_factory=list)

    def add(self, issue: str) -> None:
        self.is_valid = False
        self.issues.append(issue)
        self.corrections.append(ISSUE_CORRECTIONS[issue])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "issues": list(self.issues),
            "corrections": list(self.corrections),
        }


def check_politeness_level(text: str, level: int) -> bool:
    """목표 레벨 표현 포함 여부"""
    return bool(POLITENESS_MARKERS[clamp_level(level)].search(text))


def is_over_polite(text: str) -> bool:
    return any(pattern.search(text) for pattern in OVER_POLITE_PATTERNS)


def validate_refinement(original: str, converted: str, level: int) -> RefinementValidation:
    """
    리파인 결과 검증

    사용 예시:
        validation = validate_refinement("アプデしといて", "アップデートしといて", 3)
        validation.issues   # ["inadequate_politeness"]
    """
    validation = RefinementValidation()

    ratio = len(converted) / len(original) if original else 1.0
    if ratio > MAX_LENGTH_RATIO or ratio < MIN_LENGTH_RATIO:
        validation.add("length_anomaly")

    if not check_politeness_level(converted, level):
        validation.add("inadequate_politeness")

    if is_over_polite(converted):
        validation.add("over_polite")

    return validation
