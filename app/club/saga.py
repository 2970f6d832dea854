"""
Compensating actions

여러 백엔드 호출로 이루어진 작업(동아리 생성)이 중간에 실패했을 때
이미 반영된 단계를 역순으로 되돌립니다. 단일 트랜잭션이 아니므로
보상 작업 자체의 실패는 로그로만 남기고 원래 오류를 그대로 전파합니다.
"""

from typing import Any, Callable, List, Tuple

from loguru import logger


class Compensations:
    """역순으로 실행되는 보상 작업 목록"""

    def __init__(self, name: str):
        self.name = name
        self._steps: List[Tuple[str, Callable[..., Any], tuple]] = []

    def add(self, description: str, func: Callable[..., Any], *args: Any) -> None:
        """보상 작업 등록 (삭제처럼 여러 번 실행해도 안전한 작업만)"""
        self._steps.append((description, func, args))

    def run(self) -> None:
        """등록된 보상 작업을 역순으로 실행. 실행한 작업은 목록에서 제거"""
        while self._steps:
            description, func, args = self._steps.pop()
            try:
                func(*args)
                logger.warning(f"[{self.name}] 롤백: {description}")
            except Exception as e:
                logger.error(f"[{self.name}] 롤백 실패 ({description}): {e}")

    def clear(self) -> None:
        self._steps.clear()

    def __len__(self) -> int:
        return len(self._steps)

    def __enter__(self) -> "Compensations":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.run()
        else:
            self.clear()
        return False
