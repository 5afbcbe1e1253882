"""
Background generation worker.

Runs a ``LevelGenerator`` on its own thread so the caller stays responsive.
``stop()`` requests cooperative cancellation; the search notices it at its
next recursive step.
"""

import threading
from typing import Optional

import structlog

from .generator import GenerationResult, LevelGenerator

logger = structlog.get_logger()


class GenerationWorker:
    """Owns one generation run on a daemon thread."""

    def __init__(self, generator: LevelGenerator, name: str = "level-generation"):
        self.generator = generator
        self.name = name
        self.cancel_event = threading.Event()

        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        self._result: Optional[GenerationResult] = None
        self._error: Optional[str] = None

    def start(self) -> "GenerationWorker":
        if self._thread is not None:
            raise RuntimeError("Worker already started")

        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self._result = self.generator.generate(self.cancel_event)
            if self._result.error:
                self._error = self._result.error
        except Exception as e:
            logger.exception("Generation worker crashed", worker=self.name)
            self._error = str(e)
        finally:
            self._stopped.set()

    def stop(self) -> None:
        """Ask the running search to give up."""
        self.cancel_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the run to end. Returns True if it has stopped."""
        return self._stopped.wait(timeout)

    @property
    def stopping(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def result(self) -> Optional[GenerationResult]:
        return self._result

    @property
    def error(self) -> Optional[str]:
        return self._error
