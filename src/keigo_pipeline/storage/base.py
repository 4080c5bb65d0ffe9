"""
State Store Interface

FeedbackLearner 상태를 저장/로드하는 저장소 인터페이스

NOTE: 코어는 저장 매체를 모름. blob은 JSON 직렬화 가능한 dict
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class StateStore(ABC):
    """
    상태 저장소 인터페이스 (Abstract)

    사용 예시:
        class RedisStateStore(StateStore):
            def load_state(self, key):
                raw = self.client.get(key)
                return json.loads(raw) if raw else None

            def save_state(self, key, blob):
                self.client.set(key, json.dumps(blob))
    """

    @abstractmethod
    def load_state(self, key: str) -> Optional[Dict[str, Any]]:
        """
        저장된 상태 로드

        Returns:
            저장된 blob, 없으면 None

        Raises:
            StorageError: 읽기 실패
        """
        pass

    @abstractmethod
    def save_state(self, key: str, blob: Dict[str, Any]) -> None:
        """
        상태 저장 (덮어쓰기)

        Raises:
            StorageError: 쓰기 실패
        """
        pass


class MemoryStorage(StateStore):
    """메모리 저장소 (테스트 / 세션 한정 사용)"""

    def __init__(self):
        self._states: Dict[str, Dict[str, Any]] = {}

    def load_state(self, key: str) -> Optional[Dict[str, Any]]:
        state = self._states.get(key)
        return copy.deepcopy(state) if state is not None else None

    def save_state(self, key: str, blob: Dict[str, Any]) -> None:
        self._states[key] = copy.deepcopy(blob)

    def keys(self):
        return list(self._states)
