"""
Sentence Assembler

문장 전체를 재구성해서 정중한 문장 생성

1. 구성요소 추출 (본문 / 요청 종류 / 감정 톤 / 질문·요청 여부)
2. 구조 설계 (인사 → 쿠션 → 본문 → 맺음말 → 추가 배려 문장)
3. 조립 (공백 정규화) + 레벨 4 이상은 이모지 1개

인사/쿠션/맺음말/이모지 선택은 주입된 random.Random으로 무작위 선택.
같은 입력이라도 결과가 매번 같지 않음 (seed 고정 시 재현 가능)
"""

import random
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..models import (
    Relationship,
    Situation,
    Urgency,
    TimeContext,
    ContextDescriptor,
    LEVEL_DESCRIPTIONS,
    LEVEL_CHARACTERISTICS,
    clamp_level,
)


# ============================================
# 표현 후보
# ============================================
GREETINGS: Dict[TimeContext, List[str]] = {
    TimeContext.MORNING: ["おはようございます", "お疲れ様です", "朝からお忙しい中"],
    TimeContext.AFTERNOON: ["お疲れ様です", "いつもお世話になっております", "午後もお忙しい中"],
    TimeContext.EVENING: ["お疲れ様でした", "遅い時間に恐縮です", "本日もお疲れ様です"],
    TimeContext.GENERAL: ["いつもお世話になっております", "お疲れ様です", "恐れ入ります"],
}

CUSHIONS: Dict[str, List[str]] = {
    "request": [
        "お忙しい中恐縮ですが", "もしよろしければ", "お手数をおかけしますが",
        "ご都合がつく際に", "お時間のある時に", "恐れ入りますが",
    ],
    "urgent": [
        "急ぎで恐縮ですが", "緊急でお願いがあります", "至急で申し訳ございませんが",
        "大変恐縮ですが急ぎで", "お忙しい中申し訳ございませんが緊急で",
    ],
    "superior": [
        "お忙しい中申し訳ございませんが", "恐れ入りますが", "不躾なお願いで申し訳ございませんが",
        "ご多忙中恐縮ですが", "お時間をいただき恐縮ですが",
    ],
    "casual": ["よろしければ", "もしお時間があるときに", "お疲れ様です", "いつもありがとうございます"],
}

CLOSINGS: Dict[str, List[str]] = {
    "request": [
        "よろしくお願いいたします", "ご検討のほどよろしくお願いします",
        "お忙しい中ありがとうございます", "どうぞよろしくお願いします",
    ],
    "question": [
        "お教えいただけますと幸いです", "ご回答いただければと思います",
        "お聞かせいただけませんでしょうか", "ご意見をお聞かせください",
    ],
    "urgent": [
        "急ぎで申し訳ございませんが、よろしくお願いします",
        "お忙しい中恐縮ですが、お急ぎでお願いします",
        "至急対応していただけますと助かります",
    ],
    "gratitude": [
        "いつもありがとうございます", "お忙しい中ありがとうございました",
        "ご協力いただきありがとうございます", "心より感謝申し上げます",
    ],
}

EMOJIS: Dict[str, List[str]] = {
    "request": ["🙏", "💦", "✨"],
    "question": ["❓", "🤔", "💭"],
    "urgent": ["⚡", "🔥", "💦"],
    "grateful": ["😊", "🙏", "✨"],
    "general": ["😊", "✨", "🌸"],
}

OPEN_QUESTION_COURTESY = "何かご不明な点がございましたら、お気軽にお声かけください。"
SUPERIOR_COURTESY = "ご多忙中にも関わらず、いつもありがとうございます。"
HIGHEST_COURTESY = "何卒よろしくお願い申し上げます。"

# 본문 변환용 단어 맵 (LexicalConverter와 별개)
BODY_WORD_MAP: Dict[str, str] = {
    "アプデ": "アップデート",
    "バグ": "不具合",
    "チェック": "ご確認",
    "やって": "ご対応",
    "して": "していただく",
    "マジで": "非常に",
    "ヤバい": "大変な状況",
}

FILLERS = re.compile(r"ちょっと|やっぱり|とりあえず")
CASUAL_TAILS = re.compile(r"だよね|じゃん|だっけ")

# 순서 = 우선순위
REQUEST_TYPES = (
    ("verification", re.compile(r"確認|チェック|見て")),
    ("information", re.compile(r"教えて|聞きたい|質問")),
    ("action", re.compile(r"作って|やって|対応")),
    ("sharing", re.compile(r"送って|共有")),
    ("meeting", re.compile(r"会議|打ち合わせ|ミーティング")),
    ("notification", re.compile(r"報告|連絡|お知らせ")),
)

EMOTIONAL_TONES = (
    ("urgent", re.compile(r"急|緊急|至急|ヤバい|マジで")),
    ("grateful", re.compile(r"ありがとう|感謝|助かる")),
    ("apologetic", re.compile(r"すみません|申し訳|ごめん")),
    ("troubled", re.compile(r"困って|問題|トラブル")),
    ("requesting", re.compile(r"よろしく|お願い")),
)

EMOJI_CONTEXTS = (
    ("request", re.compile(r"お願い|いただけ")),
    ("question", re.compile(r"でしょうか|ますか")),
    ("urgent", re.compile(r"急|至急|緊急")),
    ("grateful", re.compile(r"ありがとう|感謝")),
)

REQUEST_VERBS = re.compile(r"して|やって|お願い")

QUALITY_MARKERS = ("お疲れ", "いつもお世話", "よろしく", "ありがとう", "すみません")


def _classify(text: str, table, default: str) -> str:
    for name, pattern in table:
        if pattern.search(text):
            return name
    return default


@dataclass
class TextComponents:
    """입력 문장 구성요소"""
    main_content: str
    request_type: str
    emotional_tone: str
    has_question: bool
    has_request: bool
    length: int


@dataclass
class SentenceStructure:
    """조립 전 문장 구조 (None인 파트는 생략)"""
    greeting: Optional[str]
    cushion: Optional[str]
    main_body: str
    closing: Optional[str]
    courtesy: Optional[str]


@dataclass
class LevelVariation:
    """레벨별 / 스타일별 변형"""
    level: int
    text: str
    description: str
    characteristics: List[str] = field(default_factory=list)
    style: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "level": self.level,
            "text": self.text,
            "description": self.description,
            "characteristics": self.characteristics,
        }
        if self.style:
            result["style"] = self.style
        return result


class SentenceAssembler:
    """
    문장 단위 정중 표현 생성기

    사용 예시:
        assembler = SentenceAssembler(rng=random.Random(42))
        text = assembler.generate("資料を送って", context, level=3)
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, text: str, context: Optional[ContextDescriptor], level: int = 3) -> str:
        """
        정중한 문장 생성

        Args:
            text: 원문
            context: ContextAnalyzer 결과
            level: 정중함 레벨 (1~5)

        Returns:
            조립된 문장
        """
        level = clamp_level(level)
        components = self.extract_components(text)
        structure = self.plan_structure(components, context, level)
        return self.assemble(structure, level)

    # ==================== 1. 구성요소 ====================

    def extract_components(self, text: str) -> TextComponents:
        main_content = CASUAL_TAILS.sub("", FILLERS.sub("", text)).strip()
        return TextComponents(
            main_content=main_content,
            request_type=_classify(text, REQUEST_TYPES, "general"),
            emotional_tone=_classify(text, EMOTIONAL_TONES, "neutral"),
            has_question="？" in text or "?" in text,
            has_request=bool(REQUEST_VERBS.search(text)),
            length=len(text),
        )

    # ==================== 2. 구조 설계 ====================

    def plan_structure(
        self,
        components: TextComponents,
        context: Optional[ContextDescriptor],
        level: int,
    ) -> SentenceStructure:
        return SentenceStructure(
            greeting=self.select_greeting(context) if level >= 3 else None,
            cushion=self.select_cushion(components, context, level),
            main_body=self.transform_body(components, level),
            closing=self.select_closing(components, level),
            courtesy=self.courtesy_sentences(context, level) if level >= 4 else None,
        )

    def select_greeting(self, context: Optional[ContextDescriptor]) -> str:
        time_context = context.time_context if context else TimeContext.GENERAL
        return self.rng.choice(GREETINGS.get(time_context, GREETINGS[TimeContext.GENERAL]))

    def select_cushion(
        self,
        components: TextComponents,
        context: Optional[ContextDescriptor],
        level: int,
    ) -> Optional[str]:
        if level <= 2:
            return None
        if components.emotional_tone == "urgent":
            return self.rng.choice(CUSHIONS["urgent"])
        if context and context.relationship == Relationship.SUPERIOR:
            return self.rng.choice(CUSHIONS["superior"])
        if components.request_type == "action" or components.has_request:
            return self.rng.choice(CUSHIONS["request"])
        return self.rng.choice(CUSHIONS["casual"])

    def transform_body(self, components: TextComponents, level: int) -> str:
        """단어 맵 → 레벨별 구 맵 → 문말 보정"""
        body = components.main_content
        for casual, polite in BODY_WORD_MAP.items():
            body = body.replace(casual, polite)

        body = body.replace("確認して", "ご確認いただけますでしょうか" if level >= 4 else "ご確認ください")
        body = body.replace("教えて", "お教えいただけませんでしょうか" if level >= 3 else "お教えください")
        body = body.replace("送って", "お送りいただけませんでしょうか" if level >= 3 else "お送りください")

        # 이미 依頼形/疑問形으로 끝나면 마침표만
        if body.endswith(("か", "ください")):
            body += "。"
        elif not body.endswith(("。", "？", "です", "ます")):
            if components.has_question:
                body += "でしょうか？" if level >= 3 else "ですか？"
            else:
                body += "いただけますでしょうか。" if level >= 3 else "お願いします。"
        return body

    def select_closing(self, components: TextComponents, level: int) -> Optional[str]:
        if level <= 2:
            return None
        if components.has_question:
            return self.rng.choice(CLOSINGS["question"])
        if components.emotional_tone == "urgent":
            return self.rng.choice(CLOSINGS["urgent"])
        if components.emotional_tone == "grateful":
            return self.rng.choice(CLOSINGS["gratitude"])
        return self.rng.choice(CLOSINGS["request"])

    def courtesy_sentences(self, context: Optional[ContextDescriptor], level: int) -> str:
        elements = []
        if self.rng.random() > 0.5:
            elements.append(OPEN_QUESTION_COURTESY)
        if context and context.relationship == Relationship.SUPERIOR:
            elements.append(SUPERIOR_COURTESY)
        if level >= 5:
            elements.append(HIGHEST_COURTESY)
        # 레벨 4 이상은 배려 문장 최소 1개
        if not elements:
            elements.append(OPEN_QUESTION_COURTESY)
        return " ".join(elements)

    # ==================== 3. 조립 ====================

    def assemble(self, structure: SentenceStructure, level: int) -> str:
        parts = []
        if structure.greeting:
            parts.append(structure.greeting + "。")
        if structure.cushion:
            parts.append(structure.cushion + "、")
        parts.append(structure.main_body)
        if structure.closing:
            parts.append(structure.closing + "。")
        if structure.courtesy:
            parts.append(structure.courtesy)

        result = re.sub(r"\s+", " ", " ".join(parts)).strip()

        if level >= 4:
            result = f"{result} {self.select_emoji(result)}"
        return result

    def select_emoji(self, text: str) -> str:
        category = _classify(text, EMOJI_CONTEXTS, "general")
        return self.rng.choice(EMOJIS[category])

    # ==================== 변형 ====================

    def generate_variations(
        self,
        text: str,
        context: ContextDescriptor,
        base_level: int = 3,
    ) -> List[LevelVariation]:
        """레벨 2~5 + 비즈니스/친근 스타일 (총 7개)"""
        variations = [
            LevelVariation(
                level=level,
                text=self.generate(text, context, level),
                description=LEVEL_DESCRIPTIONS[level],
                characteristics=list(LEVEL_CHARACTERISTICS[level]),
            )
            for level in range(2, 6)
        ]

        base_level = clamp_level(base_level)
        business = replace(context, situation=Situation.BUSINESS, relationship=Relationship.SUPERIOR)
        friendly = replace(context, situation=Situation.CASUAL, relationship=Relationship.COLLEAGUE)
        variations.append(LevelVariation(
            level=base_level,
            text=self.generate(text, business, base_level),
            description="ビジネス調",
            style="business",
        ))
        variations.append(LevelVariation(
            level=base_level,
            text=self.generate(text, friendly, base_level),
            description="親しみやすい丁寧調",
            style="friendly",
        ))
        return variations

    # ==================== 품질 분석 ====================

    def analyze_quality(
        self,
        original: str,
        generated: str,
        context: Optional[ContextDescriptor] = None,
    ) -> Dict[str, Any]:
        """생성 문장 간이 평가 (0~100점, 기본 40점)"""
        analysis = {"improvements": [], "strengths": [], "suggestions": [], "score": 0}

        if any(marker in generated for marker in QUALITY_MARKERS):
            analysis["strengths"].append("適切な挨拶・締めの言葉が含まれています")
            analysis["score"] += 20
        else:
            analysis["improvements"].append("挨拶や締めの言葉を追加すると更に丁寧になります")

        if context and context.urgency == Urgency.URGENT and "急" in generated:
            analysis["strengths"].append("緊急性が適切に表現されています")
            analysis["score"] += 15

        if len(generated) > len(original) * 1.5:
            analysis["strengths"].append("元の文章より十分に丁寧な表現になりました")
            analysis["score"] += 25

        analysis["score"] = min(100, analysis["score"] + 40)
        return analysis
