"""Per-submission processing: eligibility gates, translation, upload and reply."""
from typing import Callable, Optional
from urllib.parse import urlparse

from src import settings
from src.compositor import CompositingEngine, to_data_url
from src.image_fetcher import fetch_image
from src.imgur_client import ImgurClient
from src.logging_conf import logger
from src.queue.models import ProcessingOutcome, QueueItem
from src.queue.submission_queue import SubmissionQueue
from src.reddit_client import RedditClient
from src.translation_client import TranslationClient, TranslationError, is_translatable

RETRY_LATER = ProcessingOutcome.RETRY_LATER
REMOVE = ProcessingOutcome.REMOVE_FROM_QUEUE


class UnexpectedOutcomeError(RuntimeError):
    """Raised when item processing yields something other than a ProcessingOutcome."""


def is_supported_url(url: str, hostnames=None) -> bool:
    """True if url is an absolute http(s) URL on an allow-listed host."""
    allowed = settings.SUPPORTED_HOSTNAMES if hostnames is None else hostnames
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and hostname in allowed


class SubmissionProcessor:
    """Drains the submission queue, one submission at a time."""

    def __init__(
        self,
        queue: SubmissionQueue,
        reddit: RedditClient,
        translator: TranslationClient,
        uploader: ImgurClient,
        compositor: Optional[CompositingEngine] = None,
        image_fetcher: Callable = fetch_image,
    ):
        self.queue = queue
        self.reddit = reddit
        self.translator = translator
        self.uploader = uploader
        self.compositor = compositor or CompositingEngine()
        self.fetch_image = image_fetcher

    def process_queue(self, should_stop: Optional[Callable[[], bool]] = None) -> int:
        """
        Run one tick over the queue.

        Expired submissions are dropped and the rest refreshed before any is
        processed. Submissions queued after the refresh wait for the next tick.

        Returns:
            Number of submissions removed during the tick
        """
        self.queue.clear_expired()

        pending = self.queue.snapshot()
        if not pending:
            logger.debug("Queue is empty")
            return 0

        logger.info(f"Processing {len(pending)} queued submissions")
        self.queue.refresh_all(self.reddit.refresh_submission, pending)

        removed = 0
        for item in pending:
            if should_stop and should_stop():
                logger.info("Stop requested; ending tick early")
                break
            if item not in self.queue:
                continue

            outcome = self.process_item(item)
            if outcome is RETRY_LATER:
                continue
            if outcome is REMOVE:
                self.queue.remove(item.id)
                removed += 1
                continue
            raise UnexpectedOutcomeError(f"Unexpected outcome for submission {item.id}: {outcome!r}")

        logger.info(f"Tick finished: {removed} removed, {len(self.queue)} still queued")
        return removed

    def process_item(self, item: QueueItem) -> ProcessingOutcome:
        """Run the gate sequence for one submission, converting failures to removal."""
        try:
            return self._process(item)
        except Exception as e:
            logger.error(f"Failed to process submission {item.id}: {e}", exc_info=True)
            return REMOVE

    def _process(self, item: QueueItem) -> ProcessingOutcome:
        if not is_supported_url(item.url):
            logger.info(f"Skipping {item.id}: unsupported url {item.url}")
            return REMOVE

        # Wait for the post to get some traction before translating it.
        if item.view_count < settings.MIN_VIEW_COUNT:
            logger.debug(f"Deferring {item.id}: {item.view_count} views")
            return RETRY_LATER

        # Processed submissions leave the queue, but never reply twice.
        if self.reddit.has_commented_on(item):
            logger.info(f"Skipping {item.id}: already replied")
            return REMOVE

        image = self.fetch_image(item.url)
        if image is None:
            logger.info(f"Skipping {item.id}: image unavailable")
            return REMOVE

        if image.width < settings.MIN_IMAGE_DIMENSION or image.height < settings.MIN_IMAGE_DIMENSION:
            logger.info(f"Skipping {item.id}: image too small ({image.width}x{image.height}px)")
            return REMOVE

        try:
            regions = self.translator.translate(to_data_url(image))
        except TranslationError as e:
            logger.error(f"Translation failed for {item.id}: {e}")
            return REMOVE

        if not is_translatable(regions):
            languages = sorted({r.original_language for r in regions})
            logger.info(f"Skipping {item.id}: nothing to translate (languages: {languages})")
            return REMOVE

        translated = self.compositor.composite(image, regions)

        link = self.uploader.upload(translated)
        if link is None:
            logger.info(f"Skipping {item.id}: upload failed")
            return REMOVE

        self.reddit.reply(item, f"[Translated version]({link})")
        logger.info(f"Translated submission {item.id}: {link}")
        return REMOVE
