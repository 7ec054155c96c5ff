"""In-process TaskTrigger backed by a single-thread executor."""

import threading
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from voice_memo.domain.models import InvocationContext
from voice_memo.infrastructure.interfaces import TaskTrigger
from voice_memo.logging import setup_logging

logger = setup_logging()

Runner = Callable[[InvocationContext], Any]


class LocalScheduler(TaskTrigger):
    """
    Runs worker invocations on a bounded in-process pool.

    The pool has one thread by default, so invocations never overlap inside a
    process. ``bind`` must be called with the worker loop before scheduling.
    """

    def __init__(self, max_workers: int = 1):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="transcription-worker"
        )
        self._runner: Runner | None = None
        self._lock = threading.Lock()
        self._registered: set[str] = set()

    def bind(self, runner: Runner) -> None:
        self._runner = runner

    def schedule(self) -> InvocationContext:
        invocation = self._register()
        self._executor.submit(self._run, invocation)
        logger.info(
            "Worker invocation scheduled",
            extra={"invocation_id": invocation.invocation_id},
        )
        return invocation

    def tick(self) -> Any:
        """Runs one invocation on the calling thread and returns the runner's result."""
        return self._run(self._register())

    def deregister(self, invocation: InvocationContext) -> None:
        with self._lock:
            self._registered.discard(invocation.invocation_id)
        logger.info(
            "Worker invocation deregistered",
            extra={"invocation_id": invocation.invocation_id},
        )

    @property
    def registered_invocations(self) -> set[str]:
        with self._lock:
            return set(self._registered)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _register(self) -> InvocationContext:
        if self._runner is None:
            raise RuntimeError("LocalScheduler has no runner bound")
        invocation = InvocationContext(
            invocation_id=str(uuid.uuid4()),
            scheduled_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._registered.add(invocation.invocation_id)
        return invocation

    def _run(self, invocation: InvocationContext) -> Any:
        try:
            return self._runner(invocation)
        except Exception:
            logger.exception(
                "Worker invocation crashed",
                extra={"invocation_id": invocation.invocation_id},
            )
            return None
