"""파이프라인 단계별 소요 시간 측정."""

import time
from contextlib import contextmanager

from loguru import logger


@contextmanager
def timer(label: str = "", slow_after: float | None = None):
    """블록 실행 시간을 측정해 로그로 남긴다.

    외부 호출이 slow_after(초)를 넘기면 WARNING으로 기록한다.
    예외가 나도 측정값은 남는다.

    사용법:
        with timer("host upload") as t:
            ...
        t.elapsed
    """
    t = _TimerResult()
    start = time.perf_counter()
    try:
        yield t
    finally:
        t.elapsed = time.perf_counter() - start
        if label:
            if slow_after is not None and t.elapsed > slow_after:
                logger.warning(f"[{label}] {t.elapsed:.3f}s (slow)")
            else:
                logger.info(f"[{label}] {t.elapsed:.3f}s")


class _TimerResult:
    elapsed: float = 0.0
