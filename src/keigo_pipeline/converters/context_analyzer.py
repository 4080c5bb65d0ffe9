"""
Context Analyzer

입력 문장을 의도 / 긴급도 / 관계 / 상황 / 격식 / 시간대로 분류

- 순수 함수: 부작용, I/O 없음 (시간대 추정용 clock만 주입)
- 어떤 입력에도 예외 없이 기본값(general/normal/unknown)으로 수렴
"""

import re
from datetime import datetime
from typing import Callable, List, Optional, Pattern, Sequence, Tuple, TypeVar

from ..models import (
    Intent,
    Urgency,
    Relationship,
    Situation,
    FormalityLevel,
    TimeContext,
    ImprovementIssue,
    ImprovementNeeds,
    ContextDescriptor,
)

E = TypeVar("E")


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p) for p in patterns)


# ============================================
# 분류 규칙 테이블 (순서 = 우선순위)
# ============================================

INTENT_PATTERNS: Tuple[Tuple[Intent, Tuple[Pattern, ...]], ...] = (
    (Intent.REQUEST, _compile(
        r"して", r"してください", r"お願い", r"頼む", r"やって", r"確認", r"チェック",
        r"見て", r"教えて", r"送って", r"作って", r"修正", r"対応", r"処理",
    )),
    (Intent.QUESTION, _compile(
        r"\?", r"？", r"どう", r"いかが", r"どこ", r"いつ", r"なぜ", r"なに", r"どれ",
        r"大丈夫", r"可能", r"できる", r"わかる", r"知って",
    )),
    (Intent.REPORT, _compile(
        r"報告", r"お知らせ", r"完了", r"終了", r"済み", r"できました", r"しました",
        r"進捗", r"状況", r"結果", r"について", r"件で",
    )),
    (Intent.APOLOGY, _compile(
        r"すみません", r"申し訳", r"ごめん", r"失礼", r"遅れ", r"ミス", r"間違い",
        r"忘れ", r"できません", r"困って",
    )),
    (Intent.GREETING, _compile(
        r"おはよう", r"こんにちは", r"こんばんは", r"お疲れ", r"失礼します",
        r"よろしく",
    )),
    (Intent.COMPLAINT, _compile(
        r"問題", r"困る", r"おかしい", r"変", r"ダメ", r"不具合", r"エラー",
        r"動かない", r"できない", r"遅い",
    )),
    (Intent.APPRECIATION, _compile(
        r"ありがとう", r"感謝", r"助かる", r"助かりました", r"嬉しい",
    )),
)

# urgent → relaxed 순서로 검사, 둘 다 아니면 normal
URGENCY_PATTERNS: Tuple[Tuple[Urgency, Tuple[Pattern, ...]], ...] = (
    (Urgency.URGENT, _compile(
        r"急", r"緊急", r"至急", r"ASAP", r"今すぐ", r"すぐに", r"早く", r"急いで",
        r"待って", r"ヤバい", r"マジで", r"本当に", r"大変", r"危険",
    )),
    (Urgency.RELAXED, _compile(
        r"ゆっくり", r"のんびり", r"空いてる時", r"余裕", r"後で", r"今度",
        r"いつか", r"そのうち",
    )),
)

RELATIONSHIP_PATTERNS: Tuple[Tuple[Relationship, Tuple[Pattern, ...]], ...] = (
    (Relationship.SUPERIOR, _compile(
        r"部長", r"課長", r"社長", r"先輩", r"上司", r"お疲れ様", r"恐れ入り", r"失礼",
        r"申し訳", r"いつもお世話", r"ありがとうございます",
    )),
    (Relationship.COLLEAGUE, _compile(
        r"さん", r"君", r"よろしく", r"一緒に", r"手伝", r"相談", r"どう思う",
    )),
    (Relationship.SUBORDINATE, _compile(
        r"頼む", r"やって", r"確認して", r"急いで", r"大丈夫？", r"後輩", r"新人",
    )),
    (Relationship.CUSTOMER, _compile(
        r"お客", r"ご利用", r"サービス", r"お問い合わせ", r"ご質問", r"ご不明",
    )),
)

SITUATION_PATTERNS: Tuple[Tuple[Situation, Tuple[Pattern, ...]], ...] = (
    (Situation.BUSINESS, _compile(
        r"会議", r"資料", r"企画", r"プロジェクト", r"売上", r"予算", r"契約",
        r"クライアント", r"顧客", r"営業", r"部署", r"チーム",
    )),
    (Situation.TECHNICAL, _compile(
        r"システム", r"アプリ", r"サーバー", r"データベース", r"API", r"バグ",
        r"デプロイ", r"テスト", r"実装", r"設計", r"コード",
    )),
    (Situation.CASUAL, _compile(
        r"飲み", r"ランチ", r"休憩", r"趣味", r"映画", r"ゲーム", r"旅行",
        r"週末", r"プライベート",
    )),
)

FORMAL_MARKERS = _compile(
    r"です", r"ます", r"ございます", r"いただき", r"いたします", r"申し上げ",
    r"恐れ入り", r"失礼", r"お世話になっております",
)

CASUAL_MARKERS = _compile(
    r"だよ", r"だね", r"じゃん", r"って", r"やつ", r"すげー", r"マジで",
    r"ヤバい", r"オッケー",
)

TIME_PATTERNS: Tuple[Tuple[TimeContext, Tuple[Pattern, ...]], ...] = (
    (TimeContext.MORNING, _compile(r"おはよう", r"朝", r"午前", r"今朝")),
    (TimeContext.AFTERNOON, _compile(r"こんにちは", r"午後", r"昼", r"ランチ")),
    (TimeContext.EVENING, _compile(r"こんばんは", r"夕方", r"夜", r"お疲れ様")),
    (TimeContext.GENERAL, _compile(r"今日", r"明日", r"昨日", r"今週", r"来週")),
)

# 변환이 필요한 캐주얼 단어 (대소문자 구분, 리터럴 일치)
CASUAL_WORDS: Tuple[str, ...] = (
    "アプデ", "バグ", "レス", "リスケ", "ググる", "ヤバい", "マジで",
    "やって", "して", "ダメ", "オッケー", "NG", "OK", "チェック",
)

POLITENESS_MARKERS: Tuple[str, ...] = ("お疲れ", "よろしく", "ありがとう", "すみません")

DIRECT_COMMAND = re.compile(r"^[やして]")

BRIEF_LENGTH = 10

ISSUE_SUGGESTIONS = {
    ImprovementIssue.CASUAL_LANGUAGE: "カジュアルな表現をより丁寧な言葉に変換することをお勧めします",
    ImprovementIssue.LACKS_POLITENESS_MARKERS: "挨拶や締めの言葉を追加すると、より丁寧な印象になります",
    ImprovementIssue.TOO_BRIEF: "もう少し詳しい説明を加えると、相手に気遣いが伝わります",
    ImprovementIssue.TOO_DIRECT: "直接的な表現を柔らかい依頼形に変更することをお勧めします",
}


def count_matches(text: str, patterns: Sequence[Pattern]) -> int:
    """패턴 집합 전체의 매치 수 합계"""
    return sum(len(p.findall(text)) for p in patterns)


def _argmax(text: str, table: Sequence[Tuple[E, Sequence[Pattern]]], default: E) -> E:
    """매치 수 최댓값 카테고리 (동점은 테이블 순서, 전부 0이면 default)"""
    best, best_score = default, 0
    for category, patterns in table:
        score = count_matches(text, patterns)
        if score > best_score:
            best, best_score = category, score
    return best


def _first_match(text: str, table: Sequence[Tuple[E, Sequence[Pattern]]], default: E) -> E:
    """테이블 순서대로 처음 매치되는 카테고리"""
    for category, patterns in table:
        if any(p.search(text) for p in patterns):
            return category
    return default


class ContextAnalyzer:
    """
    입력 문장 컨텍스트 분석기

    사용 예시:
        analyzer = ContextAnalyzer()
        context = analyzer.analyze("部長、資料を確認してください")
        context.relationship   # Relationship.SUPERIOR
        context.situation      # Situation.BUSINESS
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: 시간대 키워드가 없을 때 사용할 현재 시각 (테스트용 주입)
        """
        self.clock = clock or datetime.now

    def analyze(self, text: str) -> ContextDescriptor:
        """
        문장 전체 컨텍스트 분석

        Args:
            text: 원문

        Returns:
            ContextDescriptor
        """
        if not isinstance(text, str):
            text = ""

        casual_words = self.find_casual_words(text)
        return ContextDescriptor(
            intent=self.analyze_intent(text),
            urgency=self.detect_urgency(text),
            relationship=self.estimate_relationship(text),
            situation=self.detect_situation(text),
            formality_level=self.assess_formality(text),
            time_context=self.detect_time_context(text),
            needs_improvement=self.check_improvement(text, casual_words),
            casual_words=tuple(casual_words),
        )

    # ==================== 분류 축 ====================

    def analyze_intent(self, text: str) -> Intent:
        return _argmax(text, INTENT_PATTERNS, Intent.GENERAL)

    def detect_urgency(self, text: str) -> Urgency:
        return _first_match(text, URGENCY_PATTERNS, Urgency.NORMAL)

    def estimate_relationship(self, text: str) -> Relationship:
        return _argmax(text, RELATIONSHIP_PATTERNS, Relationship.UNKNOWN)

    def detect_situation(self, text: str) -> Situation:
        return _first_match(text, SITUATION_PATTERNS, Situation.GENERAL)

    def assess_formality(self, text: str) -> FormalityLevel:
        """격식 점수: 격식 표현 +2, 캐주얼 표현 -3"""
        score = count_matches(text, FORMAL_MARKERS) * 2
        score -= count_matches(text, CASUAL_MARKERS) * 3

        if score >= 3:
            return FormalityLevel.VERY_FORMAL
        if score >= 1:
            return FormalityLevel.FORMAL
        if score >= -2:
            return FormalityLevel.NEUTRAL
        if score >= -5:
            return FormalityLevel.CASUAL
        return FormalityLevel.VERY_CASUAL

    def detect_time_context(self, text: str) -> TimeContext:
        """시간대 키워드 우선, 없으면 현재 시각으로 추정"""
        for time_context, patterns in TIME_PATTERNS:
            if any(p.search(text) for p in patterns):
                return time_context

        hour = self.clock().hour
        if hour < 12:
            return TimeContext.MORNING
        if hour < 18:
            return TimeContext.AFTERNOON
        return TimeContext.EVENING

    # ==================== 개선 체크리스트 ====================

    def check_improvement(self, text: str, casual_words: Optional[List[str]] = None) -> ImprovementNeeds:
        """각 항목은 서로 독립적으로 판정"""
        if casual_words is None:
            casual_words = self.find_casual_words(text)

        issues = []
        if casual_words:
            issues.append(ImprovementIssue.CASUAL_LANGUAGE)
        if not any(marker in text for marker in POLITENESS_MARKERS):
            issues.append(ImprovementIssue.LACKS_POLITENESS_MARKERS)
        if len(text) < BRIEF_LENGTH:
            issues.append(ImprovementIssue.TOO_BRIEF)
        if DIRECT_COMMAND.search(text):
            issues.append(ImprovementIssue.TOO_DIRECT)

        return ImprovementNeeds.from_issues(issues)

    def find_casual_words(self, text: str) -> List[str]:
        return [word for word in CASUAL_WORDS if word in text]

    def suggestions(self, context: ContextDescriptor) -> List[str]:
        """이슈별 개선 제안 메시지"""
        return [
            message for issue, message in ISSUE_SUGGESTIONS.items()
            if context.needs_improvement.has(issue)
        ]
