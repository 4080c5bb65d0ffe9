"""
Quality Scorer

변환 결과 품질 평가 (4개 축)

- naturalness: 일본어로서 자연스러운가
- intent_preservation: 원문 의도 / 키워드 / 감정 톤이 유지되는가
- appropriateness: 요청 레벨 / 상황 / 관계에 맞는 경어인가
- completeness: 정보 누락 없이 적절히 확장되었는가

종합 점수 = 가중 평균 (0.30 / 0.30 / 0.25 / 0.15)
평가기 하나가 실패하면 해당 축은 0.5로 처리
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Sequence

from loguru import logger


WEIGHTS: Dict[str, float] = {
    "naturalness": 0.30,
    "intent_preservation": 0.30,
    "appropriateness": 0.25,
    "completeness": 0.15,
}

DEFAULT_AXIS_SCORE = 0.5

# 정중 표현이 하나도 없는 변환문의 종합 점수 상한
CASUAL_OUTPUT_CAP = 0.4
CASUAL_OUTPUT_ISSUE = "敬語表現が含まれておらず、変換されていません"

GRADE_BANDS = (
    (0.9, "A+"), (0.8, "A"), (0.7, "B+"), (0.6, "B"),
    (0.5, "C+"), (0.4, "C"), (0.3, "D"),
)

SUMMARY_BANDS = (
    (0.9, "非常に高品質な変換です"),
    (0.8, "高品質な変換です"),
    (0.7, "良好な変換です"),
    (0.6, "標準的な変換です"),
    (0.5, "改善の余地があります"),
    (0.4, "品質に問題があります"),
)

METRIC_DESCRIPTIONS: Dict[str, Dict[str, str]] = {
    "naturalness": {
        "strength": "自然で流暢な日本語表現",
        "weakness": "不自然な表現が含まれています",
        "critical": "日本語として極めて不自然です",
    },
    "intent_preservation": {
        "strength": "元の意図が正確に保持されています",
        "weakness": "元の意図が一部失われています",
        "critical": "元の意図が大きく変わっています",
    },
    "appropriateness": {
        "strength": "文脈に適した適切な敬語レベル",
        "weakness": "敬語レベルが不適切です",
        "critical": "文脈に全く適していません",
    },
    "completeness": {
        "strength": "完全で包括的な変換",
        "weakness": "一部の要素が欠けています",
        "critical": "重要な情報が大幅に欠落しています",
    },
}

# 고정 벤치마크 (높은 품질 / 낮은 품질 예시)
BENCHMARK_PAIRS: Dict[str, List[Dict[str, Any]]] = {
    "high_quality": [
        {
            "original": "アプデしといて",
            "converted": "恐れ入りますが、アップデートをお願いできますでしょうか",
            "scores": {"naturalness": 0.9, "intent_preservation": 0.95, "appropriateness": 0.9, "completeness": 0.85},
        },
        {
            "original": "みんなも欲しがってるやん",
            "converted": "皆さんも関心を持たれているようですね",
            "scores": {"naturalness": 0.95, "intent_preservation": 0.9, "appropriateness": 0.85, "completeness": 0.9},
        },
    ],
    "low_quality": [
        {
            "original": "バグった",
            "converted": "恐れ入ります。バグったいただけますでしょうか。ご検討のほどよろしくお願いします。",
            "scores": {"naturalness": 0.2, "intent_preservation": 0.3, "appropriateness": 0.4, "completeness": 0.3},
        },
    ],
}


def grade(score: float) -> str:
    """종합 점수 → 등급 (A+ ~ F)"""
    for threshold, label in GRADE_BANDS:
        if score >= threshold:
            return label
    return "F"


def _summary(score: float) -> str:
    for threshold, text in SUMMARY_BANDS:
        if score >= threshold:
            return text
    return "大幅な改善が必要です"


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def _split_sentences(text: str) -> List[str]:
    return re.split(r"[。！？]", text)


@dataclass
class AxisResult:
    """축별 평가 결과"""
    score: float
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QualityReport:
    """품질 평가 리포트"""
    overall: float
    axis_scores: Dict[str, float]
    details: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    report: Dict[str, Any] = field(default_factory=dict)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def grade(self) -> str:
        return self.report.get("grade", grade(self.overall))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "axis_scores": self.axis_scores,
            "details": self.details,
            "report": self.report,
            "recommendations": self.recommendations,
        }


# ============================================
# 축별 평가기
# ============================================

class NaturalnessEvaluator:
    """부자연스러운 패턴 감점 + 자연스러운 패턴 가점 + 문장 흐름 + 조사 밀도"""

    UNNATURAL_PATTERNS: Sequence[Pattern] = tuple(re.compile(p) for p in (
        r"です。。+",
        r"ます。です",
        r"いただけますでしょうかお願いします",
        r"恐れ入ります.*恐縮です.*申し訳",
        r"[ぁ-んァ-ヶー]+いただけますでしょうか",
        # 정중 표현으로 바뀌지 않은 캐주얼 문말
        r"じゃん|だよね|やん|やで|だべ|しといて|っしょ",
    ))

    NATURAL_PATTERNS: Sequence[Pattern] = tuple(re.compile(p) for p in (
        r"です$|ます$",
        r"いただけ(ませんか|ますでしょうか)",
        r"恐れ入りますが",
    ))

    CONNECTIVE = re.compile(r"^(また|さらに|なお|ところで|それで|そして)")
    PARTICLES = re.compile(r"[はがをにでとからまでより]")

    def evaluate(self, original: str, converted: str, options: Dict[str, Any]) -> AxisResult:
        score = 0.8
        issues = []
        for pattern in self.UNNATURAL_PATTERNS:
            if pattern.search(converted):
                score -= 0.2
                issues.append(f"Unnatural pattern detected: {pattern.pattern}")

        natural_count = sum(1 for p in self.NATURAL_PATTERNS if p.search(converted))
        score += natural_count * 0.05

        flow_score = self.sentence_flow(converted)
        score = score * 0.7 + flow_score * 0.3

        particle_score = self.particle_usage(converted)
        score = score * 0.9 + particle_score * 0.1

        return AxisResult(_clamp(score), {
            "issues": issues,
            "flow_score": flow_score,
            "particle_score": particle_score,
            "natural_patterns": natural_count,
        })

    def sentence_flow(self, text: str) -> float:
        """접속사 없이 이어지는 문장마다 -0.1"""
        sentences = _split_sentences(text)
        if len(sentences) <= 1:
            return 0.8

        flow = 0.8
        for prev, curr in zip(sentences, sentences[1:]):
            prev, curr = prev.strip(), curr.strip()
            if prev and curr and not self.CONNECTIVE.search(curr):
                flow -= 0.1
        return max(0.0, flow)

    def particle_usage(self, text: str) -> float:
        if not text:
            return 0.5
        ratio = len(self.PARTICLES.findall(text)) / len(text)
        if 0.05 <= ratio <= 0.15:
            return 0.9
        if 0.03 <= ratio <= 0.20:
            return 0.7
        return 0.5


class IntentPreservationEvaluator:
    """의도 카테고리 일치 + 내용어 보존율 + 감정 톤 호환성"""

    # 순서 = 우선순위
    INTENT_KEYWORDS = (
        ("request", ("して", "やって", "お願い", "頼む")),
        ("question", ("？", "どう", "なに", "いつ", "どこ")),
        ("apology", ("ごめん", "すみません", "申し訳")),
        ("gratitude", ("ありがとう", "感謝", "助かる")),
        ("report", ("しました", "完了", "終了", "済み")),
    )

    STOP_WORDS = frozenset({"です", "ます", "した", "ある", "いる", "する", "なる"})

    SYNONYMS: Dict[str, List[str]] = {
        "アプデ": ["アップデート", "更新"],
        "バグ": ["不具合", "エラー"],
        "やって": ["対応", "実行", "処理"],
        "確認": ["チェック", "点検"],
    }

    TONE_PATTERNS = (
        ("urgent", re.compile(r"急|緊急|至急|すぐ|早く|ヤバい")),
        ("angry", re.compile(r"ムカつく|腹立つ|イライラ|怒")),
        ("happy", re.compile(r"嬉しい|楽しい|良かった|最高")),
        ("sad", re.compile(r"悲しい|残念|がっかり|落ち込")),
        ("casual", re.compile(r"だよね|じゃん|やん|だべ")),
        ("formal", re.compile(r"いたします|ございます|申し上げ")),
    )

    COMPATIBLE_TONES: Dict[str, List[str]] = {
        "urgent": ["serious", "formal"],
        "casual": ["friendly", "neutral"],
        "angry": ["serious", "formal"],
    }

    CONTENT_WORD = re.compile(r"[ぁ-んァ-ヶー一-龯]+")

    def evaluate(self, original: str, converted: str, options: Dict[str, Any]) -> AxisResult:
        original_intent = self.detect_intent(original)
        converted_intent = self.detect_intent(converted)

        score = 0.8
        score += 0.1 if original_intent == converted_intent else -0.3

        keyword_preservation = self.keyword_preservation(original, converted)
        score = score * 0.7 + keyword_preservation * 0.3

        tone_match = self.tone_match(original, converted)
        score = score * 0.8 + tone_match * 0.2

        return AxisResult(_clamp(score), {
            "original_intent": original_intent,
            "converted_intent": converted_intent,
            "keyword_preservation": keyword_preservation,
            "emotional_tone_match": tone_match,
        })

    def detect_intent(self, text: str) -> str:
        for intent, keywords in self.INTENT_KEYWORDS:
            if any(k in text for k in keywords):
                return intent
        return "general"

    def content_words(self, text: str) -> List[str]:
        return [
            w for w in self.CONTENT_WORD.findall(text)
            if len(w) >= 2 and w not in self.STOP_WORDS
        ]

    def keyword_preservation(self, original: str, converted: str) -> float:
        original_words = self.content_words(original)
        if not original_words:
            return 0.8

        converted_words = self.content_words(converted)
        preserved = sum(
            1 for word in original_words
            if word in converted_words
            or any(syn in converted_words for syn in self.SYNONYMS.get(word, []))
        )
        return preserved / len(original_words)

    def detect_tone(self, text: str) -> str:
        for tone, pattern in self.TONE_PATTERNS:
            if pattern.search(text):
                return tone
        return "neutral"

    def tone_match(self, original: str, converted: str) -> float:
        original_tone = self.detect_tone(original)
        converted_tone = self.detect_tone(converted)
        if original_tone == converted_tone:
            return 1.0
        if converted_tone in self.COMPATIBLE_TONES.get(original_tone, []):
            return 0.8
        return 0.5


class AppropriatenessEvaluator:
    """요청 레벨 / 상황 / 관계 적합도"""

    CONTEXT_INDICATORS: Dict[str, Pattern] = {
        "business": re.compile(r"お疲れ|会議|資料|企画|よろしく"),
        "technical": re.compile(r"システム|アプリ|バグ|アップデート"),
        "casual": re.compile(r"ありがとう|助かる|楽しい"),
        "formal": re.compile(r"恐れ入り|申し上げ|いたします"),
    }

    RELATIONSHIP_INDICATORS: Dict[str, Pattern] = {
        "superior": re.compile(r"恐れ入り|申し訳|失礼"),
        "colleague": re.compile(r"お疲れ|よろしく|ありがとう"),
        "subordinate": re.compile(r"お願い|確認"),
        "customer": re.compile(r"いつもお世話|ご利用|サービス"),
    }

    def evaluate(self, original: str, converted: str, options: Dict[str, Any]) -> AxisResult:
        expected_level = options.get("level") or 2
        expected_context = options.get("context") or "business"
        expected_relationship = options.get("relationship") or "colleague"

        level_match = self.level_match(converted, expected_level)
        score = 0.8 * 0.4 + level_match * 0.6

        context_match = self._indicator_match(
            converted, self.CONTEXT_INDICATORS.get(expected_context), 0.7
        )
        score = score * 0.8 + context_match * 0.2

        relationship_match = self._indicator_match(
            converted, self.RELATIONSHIP_INDICATORS.get(expected_relationship), 0.8
        )
        score = score * 0.8 + relationship_match * 0.2

        return AxisResult(_clamp(score), {
            "detected_level": self.detect_level(converted),
            "level_match": level_match,
            "context_match": context_match,
            "relationship_match": relationship_match,
        })

    @staticmethod
    def detect_level(text: str) -> int:
        if re.search(r"申し上げ|いたします|ございます", text):
            return 5
        if re.search(r"いただけますでしょうか|恐縮", text):
            return 4
        if re.search(r"いただけ|お願いします|よろしく", text):
            return 3
        if re.search(r"です|ます", text):
            return 2
        return 1

    def level_match(self, text: str, expected_level: int) -> float:
        """차이 1당 -0.2, 최저 0.4"""
        diff = abs(self.detect_level(text) - expected_level)
        return max(0.4, 1.0 - 0.2 * diff)

    @staticmethod
    def _indicator_match(text: str, pattern: Optional[Pattern], miss: float) -> float:
        return 1.0 if pattern is not None and pattern.search(text) else miss


class CompletenessEvaluator:
    """길이 비율 + 정보 요소 보존 + 문장 수 비율"""

    NUMBER = re.compile(r"\d+")
    NOUN = re.compile(r"[ぁ-んァ-ヶー一-龯]{2,}")

    def evaluate(self, original: str, converted: str, options: Dict[str, Any]) -> AxisResult:
        length_ratio = self.length_ratio(original, converted)

        score = 0.8
        if 1.2 <= length_ratio <= 3.0:
            score += 0.1
        elif length_ratio < 0.8 or length_ratio > 4.0:
            score -= 0.2

        information = self.information_preservation(original, converted)
        score = score * 0.6 + information * 0.4

        structure = self.structure_preservation(original, converted)
        score = score * 0.9 + structure * 0.1

        return AxisResult(_clamp(score), {
            "length_ratio": length_ratio,
            "information_preservation": information,
            "structure_preservation": structure,
        })

    @staticmethod
    def length_ratio(original: str, converted: str) -> float:
        if not original:
            return 1.0 if not converted else float("inf")
        return len(converted) / len(original)

    def information_elements(self, text: str) -> List[str]:
        return self.NUMBER.findall(text) + self.NOUN.findall(text)

    def information_preservation(self, original: str, converted: str) -> float:
        original_elements = self.information_elements(original)
        if not original_elements:
            return 0.9

        converted_elements = self.information_elements(converted)
        preserved = sum(
            1 for element in original_elements
            if any(element == c or element in c or c in element for c in converted_elements)
        )
        return preserved / len(original_elements)

    @staticmethod
    def structure_preservation(original: str, converted: str) -> float:
        original_count = len([s for s in _split_sentences(original) if s.strip()])
        converted_count = len([s for s in _split_sentences(converted) if s.strip()])
        ratio = converted_count / max(1, original_count)
        if 0.8 <= ratio <= 1.5:
            return 0.9
        if 0.5 <= ratio <= 2.0:
            return 0.7
        return 0.5


# ============================================
# 종합 평가
# ============================================

class QualityScorer:
    """
    변환 품질 종합 평가

    사용 예시:
        scorer = QualityScorer()
        report = scorer.score("アプデしといて", "アップデートをお願いします",
                              {"level": 3, "context": "technical"})
        report.overall        # 0.0 ~ 1.0
        report.grade          # "B+"
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(weights or WEIGHTS)
        self.evaluators = {
            "naturalness": NaturalnessEvaluator(),
            "intent_preservation": IntentPreservationEvaluator(),
            "appropriateness": AppropriatenessEvaluator(),
            "completeness": CompletenessEvaluator(),
        }

    def score(self, original: str, converted: str, options: Optional[Dict[str, Any]] = None) -> QualityReport:
        """
        4개 축 평가 후 리포트 생성

        Args:
            original: 원문
            converted: 변환문
            options: {"level": 1~5, "context": situation, "relationship": relationship}

        Returns:
            QualityReport
        """
        options = options or {}
        axis_scores: Dict[str, float] = {}
        details: Dict[str, Dict[str, Any]] = {}

        for name, evaluator in self.evaluators.items():
            try:
                result = evaluator.evaluate(original, converted, options)
                axis_scores[name] = result.score
                details[name] = result.details
            except Exception as e:
                logger.warning(f"[QualityScorer] {name} 평가 실패: {e}")
                axis_scores[name] = DEFAULT_AXIS_SCORE
                details[name] = {"error": str(e)}

        overall = self.overall(axis_scores)
        unconverted = AppropriatenessEvaluator.detect_level(converted) == 1
        if unconverted:
            overall = min(overall, CASUAL_OUTPUT_CAP)
            details.setdefault("appropriateness", {})["unconverted_casual"] = True

        report = self.build_report(axis_scores, overall)
        if unconverted:
            report["critical_issues"].append(CASUAL_OUTPUT_ISSUE)
        return QualityReport(
            overall=overall,
            axis_scores=axis_scores,
            details=details,
            report=report,
            recommendations=self.recommendations(axis_scores),
        )

    def overall(self, axis_scores: Dict[str, float]) -> float:
        weighted_sum = 0.0
        total_weight = 0.0
        for name, value in axis_scores.items():
            weight = self.weights.get(name, 0.25)
            weighted_sum += value * weight
            total_weight += weight
        return weighted_sum / total_weight if total_weight > 0 else DEFAULT_AXIS_SCORE

    @staticmethod
    def build_report(axis_scores: Dict[str, float], overall: float) -> Dict[str, Any]:
        report = {
            "grade": grade(overall),
            "summary": _summary(overall),
            "strengths": [],
            "weaknesses": [],
            "critical_issues": [],
        }
        for name, value in axis_scores.items():
            if value >= 0.8:
                report["strengths"].append(METRIC_DESCRIPTIONS[name]["strength"])
            elif value <= 0.4:
                report["weaknesses"].append(METRIC_DESCRIPTIONS[name]["weakness"])
                if value <= 0.2:
                    report["critical_issues"].append(METRIC_DESCRIPTIONS[name]["critical"])
        return report

    @staticmethod
    def recommendations(axis_scores: Dict[str, float]) -> List[Dict[str, Any]]:
        recommendations = []
        if axis_scores.get("naturalness", 1.0) < 0.7:
            recommendations.append({
                "metric": "naturalness",
                "priority": "high",
                "message": "より自然な日本語表現を使用することをお勧めします",
                "suggestions": ["硬い表現を柔らかい表現に変更", "重複する敬語を整理", "文章の流れを改善"],
            })
        if axis_scores.get("intent_preservation", 1.0) < 0.7:
            recommendations.append({
                "metric": "intent_preservation",
                "priority": "high",
                "message": "元の意図をより正確に伝える必要があります",
                "suggestions": ["重要なニュアンスの保持", "感情表現の適切な変換", "文脈の一貫性確保"],
            })
        if axis_scores.get("appropriateness", 1.0) < 0.6:
            recommendations.append({
                "metric": "appropriateness",
                "priority": "medium",
                "message": "敬語レベルを調整することをお勧めします",
                "suggestions": ["関係性に応じた敬語選択", "場面に適した表現使用", "ビジネス慣習への配慮"],
            })
        return recommendations
