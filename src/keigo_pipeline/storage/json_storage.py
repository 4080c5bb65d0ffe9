"""
JSON File Storage

학습 상태를 키별 JSON 파일로 저장/로드

디렉토리 구조:
data/state/
├── {key}.json
└── {key}.json.corrupt-{timestamp}   # 읽을 수 없는 파일은 덮어쓰지 않고 보관

저장은 임시 파일에 쓴 뒤 os.replace로 교체 (쓰기 도중 실패해도 기존 파일 유지)
"""

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from .base import StateStore
from ..exceptions import StorageError
from ..config import paths


@dataclass
class StorageConfig:
    """Storage 설정"""
    # 기본값: config.paths.STATE_DIR (KEIGO_STATE_DIR로 오버라이드)
    base_dir: str = field(default_factory=lambda: str(paths.STATE_DIR))


class JsonStorage(StateStore):
    """
    JSON 파일 기반 StateStore

    사용 예시:
        storage = JsonStorage(StorageConfig(base_dir="./data/state"))

        storage.save_state("keigo_learning_state", learner_blob)
        blob = storage.load_state("keigo_learning_state")
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self._ensure_directories()

    def _ensure_directories(self):
        """기본 디렉토리 생성"""
        Path(self.config.base_dir).mkdir(parents=True, exist_ok=True)

    # ==================== 경로 헬퍼 ====================

    def _state_path(self, key: str) -> Path:
        """상태 파일 경로 (키에서 경로 구분자 제거)"""
        safe_key = re.sub(r"[^\w\-.]", "_", key)
        return Path(self.config.base_dir) / f"{safe_key}.json"

    @staticmethod
    def _quarantine(path: Path) -> Optional[Path]:
        """손상된 상태 파일을 옆으로 이동 (다음 저장이 덮어쓰지 않도록)"""
        target = path.with_name(f"{path.name}.corrupt-{datetime.now().strftime('%Y%m%d%H%M%S%f')}")
        try:
            os.replace(path, target)
        except OSError as e:
            logger.error(f"[JsonStorage] 손상 파일 이동 실패 ({path}): {e}")
            return None
        logger.warning(f"[JsonStorage] 손상된 상태 파일 보관: {target}")
        return target

    # ==================== State ====================

    def load_state(self, key: str) -> Optional[Dict[str, Any]]:
        """
        상태 로드

        Args:
            key: 상태 키

        Returns:
            저장된 blob 또는 None (없을 경우)
        """
        path = self._state_path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"[JsonStorage] 상태 파싱 실패 ({path}): {e}")
            self._quarantine(path)
            raise StorageError(f"상태 로드 실패: {key}") from e
        except OSError as e:
            logger.warning(f"[JsonStorage] 상태 로드 실패 ({path}): {e}")
            raise StorageError(f"상태 로드 실패: {key}") from e

        if not isinstance(data, dict):
            self._quarantine(path)
            raise StorageError(f"상태 형식 오류: {key}")
        return data.get("state", data)

    def save_state(self, key: str, blob: Dict[str, Any]) -> None:
        """
        상태 저장

        Args:
            key: 상태 키
            blob: JSON 직렬화 가능한 dict
        """
        path = self._state_path(key)
        data = {
            "key": key,
            "updated_at": datetime.now().isoformat(),
            "state": blob,
        }

        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"[JsonStorage] 상태 저장 실패 ({path}): {e}")
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"상태 저장 실패: {key}") from e

    def delete_state(self, key: str) -> bool:
        """상태 파일 삭제 (존재했으면 True)"""
        path = self._state_path(key)
        if path.exists():
            path.unlink()
            return True
        return False
