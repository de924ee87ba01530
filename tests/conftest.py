import time
from typing import List, Optional

import pytest
import requests
from PIL import Image

from src import settings
from src.queue.models import QueueItem
from src.translation_client import TranslationError, TranslationRegion


@pytest.fixture(autouse=True)
def pinned_settings(monkeypatch):
    """Keep tests independent of whatever .env the developer has locally."""
    monkeypatch.setattr(settings, "MIN_VIEW_COUNT", 100)
    monkeypatch.setattr(settings, "MIN_IMAGE_DIMENSION", 375)
    monkeypatch.setattr(settings, "SUPPORTED_HOSTNAMES", frozenset({"i.redd.it", "i.imgur.com"}))
    monkeypatch.setattr(settings, "SUPPORTED_LANGUAGES", frozenset({"jp", "kr", "cn"}))
    monkeypatch.setattr(settings, "SUBMISSION_AGE_LIMIT", 24 * 60 * 60)
    monkeypatch.setattr(settings, "REFRESH_WORKERS", 4)


def char_width_measure(text: str, size: int) -> float:
    """Monospace stand-in for a real font: each character is 0.6em wide."""
    return len(text) * size * 0.6


def make_item(item_id: str = "abc123", age: float = 60, url: str = "https://i.redd.it/page.png",
              view_count: int = 500) -> QueueItem:
    return QueueItem(id=item_id, created_utc=time.time() - age, url=url, view_count=view_count)


def make_region(text: str = "HELLO WORLD", language: str = "jp",
                bounds=(10, 10, 210, 60)) -> TranslationRegion:
    min_x, min_y, max_x, max_y = bounds
    return TranslationRegion(language, text, min_x, min_y, max_x, max_y)


class FakeReddit:
    def __init__(self, commented: bool = False, refreshed_views: Optional[int] = None):
        self.commented = commented
        self.refreshed_views = refreshed_views
        self.replies: List[tuple] = []
        self.refreshed: List[str] = []
        self.listing: List[QueueItem] = []

    def refresh_submission(self, item):
        self.refreshed.append(item.id)
        if self.refreshed_views is not None:
            item.view_count = self.refreshed_views

    def has_commented_on(self, item):
        return self.commented

    def reply(self, item, text):
        self.replies.append((item.id, text))
        return True

    def get_new_submissions(self, subreddit, limit=25):
        return list(self.listing)


class FakeTranslator:
    def __init__(self, regions=None, error: Optional[Exception] = None):
        self.regions = [make_region()] if regions is None else regions
        self.error = error
        self.calls = 0

    def translate(self, image_data_url):
        self.calls += 1
        assert image_data_url.startswith("data:image/png;base64,")
        if self.error:
            raise self.error
        return self.regions


class FakeUploader:
    def __init__(self, link: Optional[str] = "https://i.imgur.com/translated.png"):
        self.link = link
        self.uploads = 0

    def upload(self, image):
        self.uploads += 1
        return self.link


class FakeCompositor:
    def __init__(self):
        self.calls = 0

    def composite(self, image, regions):
        self.calls += 1
        return image


def image_of(width: int, height: int):
    def fetch(url):
        return Image.new("RGB", (width, height), "red")
    return fetch


@pytest.fixture
def translation_failure():
    return TranslationError("translation request failed with status 500")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", text="", headers=None):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = text
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Replays scripted responses; an exception in the script is raised instead.

    The last entry is repeated once the script runs out.
    """

    def __init__(self, response=None, error=None, script=None):
        self.script = list(script) if script is not None else [error or response]
        self.headers = {}
        self.calls = []

    def _respond(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step

    get = post = request = _respond
