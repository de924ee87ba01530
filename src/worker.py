"""Worker that runs the processing pipeline on a timer."""
import time
import threading
from typing import Callable, Optional

from src.logging_conf import logger
from src import settings
from src.pipeline import SubmissionProcessor, UnexpectedOutcomeError


class Worker:
    """Runs one pipeline tick every PROCESS_INTERVAL seconds."""

    def __init__(self, processor: SubmissionProcessor, on_fatal: Optional[Callable[[BaseException], None]] = None):
        self.processor = processor
        self.on_fatal = on_fatal
        self.interval = settings.PROCESS_INTERVAL
        self.running = False
        self.thread = None
        self.fatal_error: Optional[BaseException] = None
        self._tick_lock = threading.Lock()

    def start(self):
        """Start the worker in a background thread."""
        if self.running:
            logger.warning("Worker is already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._run, name="worker", daemon=True)
        self.thread.start()
        logger.info(f"Worker started (interval: {self.interval}s)")

    def stop(self):
        """Stop the worker, letting the current submission finish."""
        if not self.running:
            return

        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=settings.REQUEST_TIMEOUT * 4)
        logger.info("Worker stopped")

    def run_tick(self) -> bool:
        """Run one tick unless one is already in flight. Returns True if it ran."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous tick still running; skipping this one")
            return False
        try:
            started = time.monotonic()
            self.processor.process_queue(should_stop=lambda: not self.running)
            logger.debug(f"Tick took {time.monotonic() - started:.1f}s")
            return True
        finally:
            self._tick_lock.release()

    def _run(self):
        """Main worker loop."""
        logger.info("Worker thread started")

        while self.running:
            # Wait for the interval first; new submissions need time to gather views.
            for _ in range(self.interval):
                if not self.running:
                    break
                time.sleep(1)
            if not self.running:
                break

            try:
                self.run_tick()
            except UnexpectedOutcomeError as e:
                logger.critical(f"Pipeline invariant violated, stopping: {e}", exc_info=True)
                self.fatal_error = e
                self.running = False
                if self.on_fatal:
                    self.on_fatal(e)
            except Exception as e:
                logger.error(f"Worker error: {e}", exc_info=True)

        logger.info("Worker thread stopped")
