"""Polling service for picking up new submissions from a subreddit."""
import time
import threading
from typing import Dict, Optional

from src.logging_conf import logger
from src import settings
from src.reddit_client import RedditClient
from src.queue.submission_queue import SubmissionQueue


class Poller:
    """Polls a subreddit's new listing and queues unseen submissions."""

    def __init__(self, client: RedditClient, queue: SubmissionQueue, subreddit: Optional[str] = None):
        self.client = client
        self.queue = queue
        self.subreddit = subreddit or settings.SUBREDDIT
        self.running = False
        self.thread = None
        self.polling_interval = settings.POLL_INTERVAL
        # id -> created_utc of every submission already handed to the queue
        self._seen: Dict[str, float] = {}

    def start(self):
        """Start the poller in a background thread."""
        if self.running:
            logger.warning("Poller is already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._run, name="poller", daemon=True)
        self.thread.start()
        logger.info(f"Poller started (r/{self.subreddit}, interval: {self.polling_interval}s)")

    def stop(self):
        """Stop the poller."""
        if not self.running:
            return

        self.running = False
        if self.thread:
            self.thread.join(timeout=10)
        logger.info("Poller stopped")

    def _run(self):
        """Main poller loop."""
        logger.info("Poller thread started")

        while self.running:
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Poller error: {e}", exc_info=True)

            # Sleep for polling interval
            for _ in range(self.polling_interval):
                if not self.running:
                    break
                time.sleep(1)

        logger.info("Poller thread stopped")

    def poll_once(self, now: Optional[float] = None) -> int:
        """Perform one polling cycle. Returns the number of submissions queued."""
        now = time.time() if now is None else now
        age_limit = self.queue.age_limit_seconds
        self._seen = {sid: created for sid, created in self._seen.items() if now - created <= age_limit}

        submissions = self.client.get_new_submissions(self.subreddit, settings.STREAM_LIMIT)
        logger.debug(f"Listing returned {len(submissions)} submissions")

        queued_count = 0
        # Listing is newest first; queue oldest first.
        for item in reversed(submissions):
            if item.id in self._seen:
                continue
            self._seen[item.id] = item.created_utc
            if now - item.created_utc > age_limit:
                continue
            if self.queue.add(item):
                queued_count += 1

        if queued_count:
            logger.info(f"Queued {queued_count} new submissions ({len(self.queue)} in queue)")
        return queued_count
