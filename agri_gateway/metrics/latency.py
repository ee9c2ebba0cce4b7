"""
Per-stage wall-clock timings for multi-step operations such as voice_chat.
A stage that raises is still timed and is listed under `failed_stages`.
"""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List

from agri_gateway.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class StageTimings:
    operation: str
    request_id: str = ""
    elapsed_ms: Dict[str, float] = field(default_factory=dict)
    failed_stages: List[str] = field(default_factory=list)

    @property
    def total_ms(self) -> float:
        return round(sum(self.elapsed_ms.values()), 2)

    @asynccontextmanager
    async def stage(self, name: str) -> AsyncIterator[None]:
        started = time.perf_counter()
        try:
            yield
        except BaseException:
            self.failed_stages.append(name)
            raise
        finally:
            self.elapsed_ms[name] = round((time.perf_counter() - started) * 1000, 2)

    def emit(self) -> None:
        logger.info(
            "Stage timings",
            extra={
                "operation": self.operation,
                "request_id": self.request_id,
                "stages_ms": dict(self.elapsed_ms),
                "failed_stages": list(self.failed_stages),
                "total_ms": self.total_ms,
            },
        )
