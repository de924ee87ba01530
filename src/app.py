"""Main application - watches a subreddit and replies with translated images."""
import signal
import sys
import threading

from src.logging_conf import logger
from src import settings
from src.compositor import CompositingEngine
from src.imgur_client import ImgurClient
from src.pipeline import SubmissionProcessor
from src.poller import Poller
from src.queue.submission_queue import SubmissionQueue
from src.reddit_client import RedditClient
from src.translation_client import TranslationClient
from src.worker import Worker


class Application:
    """Owns the queue, the API clients and the two timer threads."""

    def __init__(self):
        self.queue = SubmissionQueue()
        self.reddit = RedditClient()
        self.processor = SubmissionProcessor(
            queue=self.queue,
            reddit=self.reddit,
            translator=TranslationClient(),
            uploader=ImgurClient(),
            compositor=CompositingEngine(),
        )
        self.running = False
        self._stopped = threading.Event()
        self.poller = Poller(self.reddit, self.queue)
        self.worker = Worker(self.processor, on_fatal=lambda e: self._stopped.set())

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("Reddit Image Translator")
        logger.info("=" * 50)
        logger.info(f"Subreddit: r/{settings.SUBREDDIT}")
        logger.info(f"Poll interval: {settings.POLL_INTERVAL}s")
        logger.info(f"Process interval: {settings.PROCESS_INTERVAL}s")
        logger.info(f"Submission age limit: {settings.SUBMISSION_AGE_LIMIT}s")
        logger.info("=" * 50)

        settings.validate_config()
        self.running = True
        self._stopped.clear()
        self.poller.start()
        self.worker.start()
        logger.info("Started - watching for new submissions")

    def stop(self):
        """Stop ingestion first, then let the worker finish its current submission."""
        if not self.running:
            return
        self.running = False
        self.poller.stop()
        self.worker.stop()
        if len(self.queue):
            logger.info(f"Discarding {len(self.queue)} queued submissions")
        self._stopped.set()
        logger.info("Stopped")

    def run(self) -> int:
        """Main loop. Returns the process exit code."""
        self.start()
        self._stopped.wait()
        self.stop()
        return 1 if self.worker.fatal_error else 0


def main():
    """Entry point."""
    app = Application()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        # Wake run(), which performs the shutdown on the main thread
        app._stopped.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        sys.exit(app.run())
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
