"""
Lexical Converter

단어 / 구 단위 캐주얼 → 정중 표현 치환

3단계를 순서대로 적용 (각 단계는 이전 단계 출력에 적용):
1. 단어 사전 치환 (리터럴, 전역)
2. 컨텍스트 구 치환 (base ← business ← urgent ← superior 순 오버레이, 뒤가 이김)
3. 문말 구조 규칙 체인 (순서 고정)

모든 치환은 ConversionLogEntry로 기록 (누락 없음)
"""

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from ..models import (
    Relationship,
    Situation,
    Urgency,
    ContextDescriptor,
    ConversionLogEntry,
    Suggestion,
    clamp_level,
)


# ============================================
# 단어 사전 (삽입 순서대로 적용)
# ============================================
WORD_MAP: Dict[str, str] = {
    "アプデ": "アップデート",
    "バグ": "不具合",
    "レス": "お返事",
    "リスケ": "スケジュール変更",
    "ググる": "検索する",
    "ヤバい": "大変な状況",
    "マジで": "非常に",
    "オッケー": "承知いたしました",
    "NG": "お受けできません",
    "チェック": "確認",
    "フィックス": "修正",
    "デバッグ": "不具合調査",
    "リリース": "公開",
    "デプロイ": "配置",
    "タスク": "作業",
    "アサイン": "担当指定",
    "アポ": "お約束",
    "ミーティング": "会議",
    "プレゼン": "発表",
    "レビュー": "確認",
    "フィードバック": "ご意見",
    "デッドライン": "期限",
    "スケジュール": "予定",
    "ステータス": "状況",
    "イシュー": "課題",
    "リクエスト": "ご依頼",
    "レスポンス": "お返事",
    "サポート": "支援",
    "ヘルプ": "お手伝い",
}

# ============================================
# 구 사전
# ============================================
PHRASE_MAP: Dict[str, str] = {
    "やって": "やっていただけませんか",
    "して": "していただけませんか",
    "確認して": "ご確認いただけますでしょうか",
    "チェックして": "お確かめいただけますでしょうか",
    "教えて": "教えていただけませんか",
    "送って": "お送りいただけませんか",
    "作って": "作成していただけませんか",
    "修正して": "修正していただけませんか",
    "対応して": "ご対応いただけませんか",
    "見て": "ご覧いただけませんか",
    "読んで": "お読みいただけませんか",
    "連絡して": "ご連絡いただけませんか",
    "報告して": "ご報告いただけませんか",
    "手伝って": "お手伝いいただけませんか",
    "待って": "お待ちいただけませんか",
    "変更して": "変更していただけませんか",
    "更新して": "更新していただけませんか",
}

BUSINESS_PHRASES: Dict[str, str] = {
    "やって": "お忙しい中恐縮ですが、対応していただけますでしょうか",
    "確認して": "お時間のある際に、ご確認いただけると助かります",
    "教えて": "もしよろしければ、教えていただけませんでしょうか",
}

URGENT_PHRASES: Dict[str, str] = {
    "やって": "急ぎで恐縮ですが、対応していただけませんでしょうか",
    "確認して": "至急確認していただけますでしょうか",
    "教えて": "緊急でお聞きしたいことがあるのですが",
}

SUPERIOR_PHRASES: Dict[str, str] = {
    "やって": "お忙しい中申し訳ございませんが、対応していただけますでしょうか",
    "確認して": "恐れ入りますが、ご確認いただけますでしょうか",
    "教えて": "不躾な質問で申し訳ございませんが、教えていただけませんでしょうか",
}

# 남아 있으면 경고하는 캐주얼 표현
LEFTOVER_CASUAL_PATTERNS: Tuple[Pattern, ...] = tuple(re.compile(p) for p in (
    r"やっぱり", r"やっぱ", r"てか", r"というか", r"つーか", r"まじ", r"やばい",
    r"すげー", r"でかい", r"ちっちゃい", r"うざい", r"むかつく", r"だりー",
))

ABRUPT_POLITENESS_MARKERS: Tuple[str, ...] = (
    "お疲れ", "よろしく", "ありがとう", "すみません", "恐縮", "失礼",
    "お忙しい", "恐れ入り", "申し訳", "いつもお世話",
)

DIRECT_COMMANDS: Tuple[Pattern, ...] = tuple(re.compile(p) for p in (
    r"^[やして]", r"^確認", r"^送", r"^作", r"^修正", r"^対応",
))

POLITE_MARKERS = re.compile(r"です|ます|ませ|ください|お願い|いただ|ござい")
KANA_ONLY = re.compile(r"[ぁ-んァ-ヶー]+")


@dataclass
class LexicalConversion:
    """LexicalConverter 결과"""
    text: str
    conversions: List[ConversionLogEntry] = field(default_factory=list)
    original_length: int = 0
    converted_length: int = 0


@dataclass
class LexicalVariation:
    """단어 수준 변형 (standard / formal / casual-polite)"""
    level: int
    text: str
    type: str
    description: str


@dataclass(frozen=True)
class StructuralRule:
    """문말 구조 규칙 (matcher, 치환 템플릿)"""
    name: str
    pattern: Pattern
    rewrite: Callable[[re.Match], Optional[str]]
    reason: str


def _single_clause_request(match: re.Match) -> Optional[str]:
    """단일 절 + 정중 표현 없음 → 依頼形 부여 (して/やって로 끝나면 구 단계 담당)"""
    text = match.group(0)
    if text.endswith("して") or text.endswith("やって"):
        return None
    if POLITE_MARKERS.search(text):
        return None
    return f"{text}をお願いします"


# 평가 순서 고정
STRUCTURAL_RULES: Tuple[StructuralRule, ...] = (
    StructuralRule(
        "dakke_question", re.compile(r"(.+)だっけ？"),
        lambda m: f"{m.group(1)}でしたでしょうか？",
        "カジュアルな疑問文を丁寧な表現に変換",
    ),
    StructuralRule(
        "jan_ending", re.compile(r"(.+)じゃん"),
        lambda m: f"{m.group(1)}ですね",
        "カジュアルな文末を丁寧語に変換",
    ),
    StructuralRule(
        "dayone_agreement", re.compile(r"(.+)だよね"),
        lambda m: f"{m.group(1)}ですよね",
        "カジュアルな同意表現を丁寧語に変換",
    ),
    StructuralRule(
        "tte_itte_message", re.compile(r"(.+)って言って"),
        lambda m: f"{m.group(1)}とお伝えください",
        "カジュアルな伝言表現を丁寧語に変換",
    ),
    StructuralRule(
        "nande_question", re.compile(r"なんで(.+)？"),
        lambda m: f"なぜ{m.group(1)}のでしょうか？",
        "カジュアルな質問を丁寧な疑問文に変換",
    ),
)

SINGLE_CLAUSE_REASON = "簡潔すぎる表現に丁寧な依頼形を追加"


class LexicalConverter:
    """
    단어/구 단위 정중 표현 변환기

    사용 예시:
        converter = LexicalConverter()
        result = converter.convert("アプデしといて", context)
        result.text          # "アップデートしといて"
        result.conversions   # [ConversionLogEntry(type="word", original="アプデ", ...)]
    """

    def __init__(
        self,
        word_map: Optional[Dict[str, str]] = None,
        phrase_map: Optional[Dict[str, str]] = None,
    ):
        self.word_map = dict(word_map if word_map is not None else WORD_MAP)
        self.phrase_map = dict(phrase_map if phrase_map is not None else PHRASE_MAP)

    def convert(self, text: str, context: Optional[ContextDescriptor] = None) -> LexicalConversion:
        """
        3단계 치환 실행

        Args:
            text: 원문
            context: 컨텍스트 (구 사전 오버레이 선택용)

        Returns:
            LexicalConversion (text + 치환 로그)
        """
        conversions: List[ConversionLogEntry] = []

        converted = self.convert_words(text, conversions)
        converted = self.convert_phrases(converted, context, conversions)
        converted = self.apply_structural_rules(converted, conversions)

        return LexicalConversion(
            text=converted,
            conversions=conversions,
            original_length=len(text),
            converted_length=len(converted),
        )

    # ==================== 1단계: 단어 ====================

    def convert_words(self, text: str, conversions: List[ConversionLogEntry]) -> str:
        result = text
        for casual, polite in self.word_map.items():
            count = result.count(casual)
            if count:
                result = result.replace(casual, polite)
                conversions.append(ConversionLogEntry(
                    type="word",
                    original=casual,
                    converted=polite,
                    count=count,
                    reason="カジュアルな表現を丁寧な言葉に変換",
                ))
        return result

    # ==================== 2단계: 구 ====================

    def phrase_set(self, context: Optional[ContextDescriptor]) -> Dict[str, str]:
        """컨텍스트별 구 사전 (business → urgent → superior 순 오버레이)"""
        phrases = dict(self.phrase_map)
        if context is None:
            return phrases
        if context.situation == Situation.BUSINESS:
            phrases.update(BUSINESS_PHRASES)
        if context.urgency == Urgency.URGENT:
            phrases.update(URGENT_PHRASES)
        if context.relationship == Relationship.SUPERIOR:
            phrases.update(SUPERIOR_PHRASES)
        return phrases

    def convert_phrases(
        self,
        text: str,
        context: Optional[ContextDescriptor],
        conversions: List[ConversionLogEntry],
    ) -> str:
        result = text
        context_label = ""
        if context is not None:
            context_label = (
                f"{context.situation.value} / {context.urgency.value} / {context.relationship.value}"
            )

        for casual, polite in self.phrase_set(context).items():
            count = result.count(casual)
            if count:
                result = result.replace(casual, polite)
                conversions.append(ConversionLogEntry(
                    type="phrase",
                    original=casual,
                    converted=polite,
                    count=count,
                    reason="直接的な表現を丁寧な依頼形に変換",
                    context=context_label,
                ))
        return result

    # ==================== 3단계: 구조 규칙 ====================

    def apply_structural_rules(self, text: str, conversions: List[ConversionLogEntry]) -> str:
        result = text
        for rule in STRUCTURAL_RULES:
            result = rule.pattern.sub(self._logged(rule, conversions), result)

        # 마지막 catch-all: 가나로만 된 단일 절
        if KANA_ONLY.fullmatch(result):
            polite = _single_clause_request(KANA_ONLY.fullmatch(result))
            if polite is not None:
                conversions.append(ConversionLogEntry(
                    type="pattern",
                    original=result,
                    converted=polite,
                    count=1,
                    reason=SINGLE_CLAUSE_REASON,
                ))
                result = polite
        return result

    @staticmethod
    def _logged(rule: StructuralRule, conversions: List[ConversionLogEntry]):
        def _sub(match: re.Match) -> str:
            polite = rule.rewrite(match)
            if polite is None:
                return match.group(0)
            conversions.append(ConversionLogEntry(
                type="pattern",
                original=match.group(0),
                converted=polite,
                count=1,
                reason=rule.reason,
            ))
            return polite
        return _sub

    # ==================== 진단 / 제안 ====================

    def find_casual_words(self, text: str) -> List[str]:
        """변환 후에도 남은 캐주얼 표현 (중복 제거, 발견 순)"""
        found = [casual for casual in self.word_map if casual in text]
        for pattern in LEFTOVER_CASUAL_PATTERNS:
            match = pattern.search(text)
            if match:
                found.append(match.group(0))
        return list(dict.fromkeys(found))

    def is_abrupt(self, text: str) -> bool:
        has_markers = any(marker in text for marker in ABRUPT_POLITENESS_MARKERS)
        has_direct = any(p.search(text) for p in DIRECT_COMMANDS)
        return not has_markers and (has_direct or len(text) < 15)

    def suggestions(self, text: str, context: Optional[ContextDescriptor] = None) -> List[Suggestion]:
        """변환 결과에 대한 개선 제안"""
        suggestions = []

        casual_words = self.find_casual_words(text)
        if casual_words:
            suggestions.append(Suggestion(
                type="improvement",
                message=f"以下のカジュアルな表現が残っています: {', '.join(casual_words)}",
                examples=casual_words,
            ))

        if self.is_abrupt(text):
            suggestions.append(Suggestion(
                type="tone",
                message="文章がやや直接的です。クッション言葉を追加することをお勧めします。",
                examples=["お忙しい中恐縮ですが", "もしよろしければ", "お時間のある時に"],
            ))

        if context is not None:
            if context.urgency == Urgency.URGENT and "急" not in text and "至急" not in text:
                suggestions.append(Suggestion(
                    type="urgency",
                    message="緊急性を示す表現を追加することをお勧めします。",
                    examples=["急ぎで恐縮ですが", "至急お願いしたいのですが"],
                ))
            if (context.relationship == Relationship.SUPERIOR
                    and "恐れ入り" not in text and "申し訳" not in text):
                suggestions.append(Suggestion(
                    type="relationship",
                    message="上司への敬意を示す表現を追加することをお勧めします。",
                    examples=["恐れ入りますが", "申し訳ございませんが", "お忙しい中申し訳ございませんが"],
                ))

        return suggestions

    def variations(self, text: str, context: ContextDescriptor, level: int = 2) -> List[LexicalVariation]:
        """같은 문장의 단어 수준 변형 3종"""
        standard = self.convert(text, context)
        formal = self.convert(text, replace(context, relationship=Relationship.SUPERIOR))
        casual = self.convert(text, replace(context, situation=Situation.CASUAL))
        return [
            LexicalVariation(clamp_level(level), standard.text, "standard", "標準的な丁寧語変換"),
            LexicalVariation(clamp_level(level + 1), formal.text, "formal", "より敬語を重視した変換"),
            LexicalVariation(clamp_level(level - 1), casual.text, "casual-polite", "親しみやすさを残した丁寧な変換"),
        ]
