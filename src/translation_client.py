"""Client for the image translation service."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from src import settings
from src.logging_conf import logger


class TranslationError(Exception):
    """Raised when the translation service cannot produce a result."""


@dataclass(frozen=True)
class TranslationRegion:
    """A text region detected in the source image, with its translation."""

    original_language: str
    translated_text: str
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return max(0.0, self.max_x - self.min_x)

    @property
    def height(self) -> float:
        return max(0.0, self.max_y - self.min_y)

    @property
    def has_text(self) -> bool:
        return self.translated_text.strip() != ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(
            original_language=data.get("originalLanguage") or "",
            translated_text=data.get("translatedText") or "",
            min_x=float(data["minX"]),
            min_y=float(data["minY"]),
            max_x=float(data["maxX"]),
            max_y=float(data["maxY"]),
        )


class TranslationClient:
    """Sends images to the translation service and parses detected regions."""

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None):
        self.api_url = api_url or settings.TRANSLATION_API_URL
        self.api_key = api_key or settings.TRANSLATION_API_KEY
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def translate(self, image_data_url: str) -> List[TranslationRegion]:
        """
        Translate one image.

        Args:
            image_data_url: Image encoded as a ``data:image/png;base64,...`` URL

        Returns:
            Regions detected in the image, possibly empty

        Raises:
            TranslationError on transport failure, non-200 status or malformed body
        """
        # The service accepts several images per request; one is enough here.
        body = {"base64Images": [image_data_url], "apiKey": self.api_key}
        try:
            response = self.session.post(self.api_url, json=body, timeout=settings.REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise TranslationError(f"Translation request failed: {e}") from e

        if response.status_code != 200:
            raise TranslationError(
                f"Translation request failed with status {response.status_code}: {response.text[:200]}"
            )

        try:
            images = response.json()["images"]
            regions = [TranslationRegion.from_dict(r) for r in images[0]]
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise TranslationError(f"Malformed translation response: {e}") from e

        logger.info(f"Translation service returned {len(regions)} regions")
        return regions


def is_translatable(regions: List[TranslationRegion], supported_languages=None) -> bool:
    """True if there is at least one region and every region's language is supported."""
    supported = settings.SUPPORTED_LANGUAGES if supported_languages is None else supported_languages
    return bool(regions) and all(r.original_language in supported for r in regions)
