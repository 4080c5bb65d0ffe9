#!/usr/bin/env python3
"""
Keigo Pipeline - Interactive Conversion Script

사용자로부터 직접 문장과 피드백을 입력받아
변환-피드백 파이프라인의 전체 흐름을 테스트합니다.

실행: python -m keigo_pipeline.main
"""

import asyncio
import json
import os
from typing import Optional

from .config import get_config
from .engine import ConversionOrchestrator
from .learning import FeedbackLearner
from .llm import LLMBackendAdapter, LLMFactory
from .models import FeedbackInput, ConversionResult
from .storage import JsonStorage


def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')


def print_header(title: str):
    print("\n" + "="*60)
    print(f" {title}")
    print("="*60)


def build_orchestrator() -> ConversionOrchestrator:
    """JSON 저장소 + (API 키가 있으면) LLM 리파인 백엔드로 구성"""
    config = get_config()
    learner = FeedbackLearner(store=JsonStorage(), config=config['learning'])

    llm = LLMFactory.create_refinement_llm(config['llm'])
    backend = LLMBackendAdapter(llm) if llm else None

    return ConversionOrchestrator(
        learner=learner,
        llm_backend=backend,
        config=config['conversion'],
        llm_settings=config['llm'],
    )


def ask_level() -> Optional[int]:
    choice = input("\n[레벨] 정중함 레벨 1~5 (Enter = 자동): ").strip()
    if choice in {"1", "2", "3", "4", "5"}:
        return int(choice)
    return None


def print_result(result: ConversionResult):
    print(f"\n[변환 결과] (레벨 {result.level}, 신뢰도 {result.analysis.confidence:.2f})")
    print(f"  {result.converted}")

    context = result.context
    print(f"\n[컨텍스트] 의도={context.intent.value} 긴급도={context.urgency.value} "
          f"관계={context.relationship.value} 상황={context.situation.value}")

    if result.variations:
        print("\n[후보]")
        for candidate in result.variations[:5]:
            print(f"  - ({candidate.approach}, Lv{candidate.level}) {candidate.text}")

    if result.suggestions:
        print("\n[제안]")
        for suggestion in result.suggestions:
            print(f"  - [{suggestion.type}] {suggestion.message}")

    if result.analysis.improvements:
        print("\n[개선점]")
        for improvement in result.analysis.improvements:
            print(f"  - {improvement}")

    if result.metadata.get("error"):
        print(f"\n[참고] {result.metadata['error']}")


def ask_feedback(orchestrator: ConversionOrchestrator, result: ConversionResult):
    rating = input("\n[평가] 결과가 마음에 드시나요? 1~5 (Enter = 건너뛰기): ").strip()
    if rating not in {"1", "2", "3", "4", "5"}:
        return

    correction = None
    if int(rating) <= 3:
        correction = input("[수정] 더 나은 표현이 있다면 입력해주세요 (Enter = 없음): ").strip() or None

    feedback_id = orchestrator.record_feedback(FeedbackInput(
        original_text=result.original,
        converted_text=result.converted,
        user_rating=int(rating),
        user_correction=correction,
        context=result.context,
        options={"level": result.level},
    ))
    print(f"[AI] 피드백이 반영되었습니다 ({feedback_id})")


def run_interactive():
    clear_screen()
    print_header("Keigo Pipeline - Interactive Mode")

    orchestrator = build_orchestrator()
    use_llm = orchestrator.llm_backend is not None
    print(f"\nLLM 리파인: {'사용' if use_llm else '미사용 (규칙 기반)'}")

    while True:
        text = input("\n[입력] 변환할 문장 (q = 종료): ").strip()
        if text.lower() == "q":
            break

        level = ask_level()
        options = {"level": level} if level else None

        print("\n[AI] 변환 중...")
        result = asyncio.run(orchestrator.convert_async(text, options, use_llm=use_llm))
        print_result(result)
        ask_feedback(orchestrator, result)

    print_header("세션 종료")
    print(json.dumps(orchestrator.stats(), ensure_ascii=False, indent=2))
    print("\n[학습 리포트]")
    print(json.dumps(orchestrator.learner.improvement_report(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    try:
        run_interactive()
    except KeyboardInterrupt:
        print("\n테스트를 중단합니다.")
    except Exception as e:
        print(f"\n오류 발생: {e}")
