"""
Prompt Builder

LLM 리파인용 프롬프트 생성

- 입력 분석 (방언 / 캐주얼 / 슬랭 / 의도 / 복잡도)
- few-shot 예시 선택 (관련도 순 최대 5개)
- 변환 조건 + 규칙 + 예시 + 출력 형식으로 조립
- LLM 출력 정리 (접두어 / 따옴표 / 줄바꿈 제거)
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


DIALECT_PATTERNS = (
    ("kansai", re.compile(r"やん|やで|やねん|せやな|ほんま|なんでやねん|あかん|おおきに")),
    ("tohoku", re.compile(r"だべ|だっぺ|んだ|ずら|べ$")),
    ("kyushu", re.compile(r"ばい|たい|っちゃ|やけん")),
    ("hiroshima", re.compile(r"じゃけー|じゃけん|ほうじゃ")),
    ("nagoya", re.compile(r"だがや|みゃー|でら")),
)

CASUAL_PATTERNS = tuple(re.compile(p) for p in (
    r"やって|して$|ちょうだい",
    r"じゃん|だよね|でしょ？",
    r"マジで|ヤバい|すげー|でかい",
    r"アプデ|バグる|ググる|リスケ",
))

SLANG_PATTERNS = tuple(re.compile(p) for p in (
    r"w+$|草|ｗ",
    r"オワタ|キタ━|GJ|乙",
    r"ワロタ|ｋｋｋ|うぽつ",
    r"リア充|陰キャ|陽キャ",
))

INTENT_PATTERNS = (
    ("request", re.compile(r"してほしい|頼む|お願い|やって|してくれ|してください")),
    ("question", re.compile(r"どう|なに|いつ|どこ|だれ|なぜ|？|ですか|でしょうか")),
    ("report", re.compile(r"しました|完了|終わり|報告|状況|結果")),
    ("apology", re.compile(r"ごめん|すみません|申し訳|失礼|謝")),
    ("greeting", re.compile(r"おはよう|こんにちは|こんばんは|お疲れ|よろしく")),
    ("complaint", re.compile(r"困る|問題|おかしい|ダメ|いけない|ムカつく")),
    ("appreciation", re.compile(r"ありがとう|感謝|助かる|嬉しい")),
)

MAX_EXAMPLES = 5


@dataclass(frozen=True)
class FewShotExample:
    input: str
    output: str
    intent: str
    context: str
    level: int
    has_dialect: bool
    complexity: str


FEW_SHOT_EXAMPLES = (
    FewShotExample("みんなも欲しがってるやん", "皆さんも関心を持たれているようですね",
                   "general", "business", 2, True, "low"),
    FewShotExample("アプデしといてくれる？", "アップデートをお願いできますでしょうか",
                   "request", "technical", 2, False, "low"),
    FewShotExample("バグったわ、どないしよ", "不具合が発生いたしました。対応方法をご相談させてください",
                   "report", "technical", 3, True, "medium"),
    FewShotExample("マジでヤバいことになってる", "緊急事態が発生しております",
                   "report", "business", 3, False, "medium"),
    FewShotExample("おつかれさまでした！", "本日もお疲れ様でした",
                   "greeting", "business", 2, False, "low"),
    FewShotExample("すみません、遅れます", "申し訳ございません。少々遅れる見込みです",
                   "apology", "business", 3, False, "low"),
    FewShotExample("わからんから教えて", "理解できておりませんので、ご指導いただけませんでしょうか",
                   "question", "business", 3, True, "medium"),
    FewShotExample("ありがとうございます！助かりました", "ありがとうございます。大変助かりました",
                   "appreciation", "business", 2, False, "low"),
)


@dataclass
class TextAnalysis:
    """프롬프트용 입력 분석"""
    dialect: Optional[str]
    has_casual_language: bool
    has_slang: bool
    intent: str
    complexity: str
    length: int


class PromptBuilder:
    """
    경어 변환 프롬프트 생성기

    사용 예시:
        builder = PromptBuilder()
        prompt = builder.build("アプデしといて", {"level": 3, "context": "technical"})
        converted = builder.clean_output(llm_output)
    """

    def __init__(self, examples=FEW_SHOT_EXAMPLES):
        self.examples = tuple(examples)

    # ==================== 입력 분석 ====================

    @staticmethod
    def detect_dialect(text: str) -> Optional[str]:
        for dialect, pattern in DIALECT_PATTERNS:
            if pattern.search(text):
                return dialect
        return None

    @staticmethod
    def detect_intent(text: str) -> str:
        for intent, pattern in INTENT_PATTERNS:
            if pattern.search(text):
                return intent
        return "general"

    @staticmethod
    def assess_complexity(text: str) -> str:
        score = 2 if len(text) > 50 else 1
        score += len(re.findall(r"[一-龯]", text)) * 0.5
        score += len(re.findall(r"は|が|を|に|で|と|から|まで", text))
        score += len(re.findall(r"。|、|？|！", text))
        if score > 20:
            return "high"
        if score > 10:
            return "medium"
        return "low"

    def analyze(self, text: str) -> TextAnalysis:
        return TextAnalysis(
            dialect=self.detect_dialect(text),
            has_casual_language=any(p.search(text) for p in CASUAL_PATTERNS),
            has_slang=any(p.search(text) for p in SLANG_PATTERNS),
            intent=self.detect_intent(text),
            complexity=self.assess_complexity(text),
            length=len(text),
        )

    # ==================== 예시 선택 ====================

    def select_examples(self, analysis: TextAnalysis, options: Dict[str, Any]) -> List[FewShotExample]:
        examples = list(self.examples)
        if analysis.intent != "general":
            examples = [e for e in examples if e.intent in (analysis.intent, "general")]

        if analysis.dialect:
            dialect_examples = [e for e in examples if e.has_dialect]
            if dialect_examples:
                examples = dialect_examples

        examples = [e for e in examples if e.complexity in (analysis.complexity, "medium")]

        def relevance(example: FewShotExample) -> int:
            score = 0
            if example.intent == analysis.intent:
                score += 3
            if example.level == options.get("level"):
                score += 2
            if example.context == options.get("context"):
                score += 2
            if example.has_dialect == bool(analysis.dialect):
                score += 1
            if example.complexity == analysis.complexity:
                score += 1
            return score

        examples.sort(key=relevance, reverse=True)
        return examples[:MAX_EXAMPLES]

    # ==================== 조립 ====================

    def build(self, text: str, options: Optional[Dict[str, Any]] = None) -> str:
        """
        프롬프트 생성

        Args:
            text: 원문
            options: level / context / relationship / urgency / formality / include_emoji

        Returns:
            프롬프트 문자열
        """
        options = dict(options or {})
        level = options.get("level") or 2
        context = options.get("context") or "business"
        relationship = options.get("relationship") or "colleague"
        urgency = options.get("urgency") or "normal"
        formality = options.get("formality") or "standard"

        analysis = self.analyze(text)
        examples = self.select_examples(analysis, {**options, "level": level, "context": context})

        lines = [
            "あなたは日本語コミュニケーションの専門家です。以下の条件で自然な日本語に変換してください。",
            "",
            "【変換対象】",
            f'"{text}"',
            "",
            "【変換条件】",
            f"- 丁寧度レベル: {level}/5 (1=基本丁寧, 2=ビジネス適切, 3=非常に丁寧, 4=絵文字付き, 5=最上級敬語)",
            f"- 文脈: {context} (business/casual/formal/technical)",
            f"- 関係性: {relationship} (superior/colleague/subordinate/customer)",
            f"- 緊急度: {urgency} (relaxed/normal/urgent)",
            f"- 公式度: {formality} (casual/standard/formal)",
        ]
        if options.get("include_emoji") and level >= 4:
            lines.append("- 絵文字使用: 適度に使用して温かみを演出")

        rules = [
            "原文の意図と感情を正確に保持する",
            "不自然な敬語の重複を避ける",
            "文脈に適した自然な表現を使用する",
        ]
        if analysis.dialect:
            rules.append("方言は標準語の適切な表現に変換する")
        if analysis.has_casual_language:
            rules.append("カジュアルな表現は適切な敬語に変換する")
        if analysis.has_slang:
            rules.append("スラングや俗語は一般的な表現に置き換える")

        lines += ["", "【変換ルール】"]
        lines += [f"{i}. {rule}" for i, rule in enumerate(rules, 1)]

        if examples:
            lines += ["", "【変換例】"]
            lines += [f'例{i}: "{e.input}" → "{e.output}"' for i, e in enumerate(examples, 1)]

        lines += [
            "",
            "【出力形式】",
            "変換されたテキストのみを出力してください（説明は不要）。",
            "変換結果:",
        ]
        return "\n".join(lines)

    # ==================== 출력 정리 ====================

    @staticmethod
    def clean_output(text: str) -> str:
        text = (text or "").strip()
        text = re.sub(r"^変換結果[:：]\s*", "", text)
        text = re.sub(r'^["「『]|["」』]$', "", text)
        text = re.sub(r"\s+", " ", text)
        return text.strip()
