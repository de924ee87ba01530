"""Minimal Imgur client for hosting translated images."""
from typing import Optional
from urllib.parse import urlparse

import requests
from PIL import Image

from src import settings
from src.compositor import to_base64
from src.logging_conf import logger


class ImgurClient:
    """Uploads images anonymously under an application Client-ID."""

    def __init__(self, client_id: Optional[str] = None):
        self.upload_url = "https://api.imgur.com/3/image"
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Client-ID {client_id or settings.IMGUR_CLIENT_ID}",
            "Accept": "application/json"
        })

    def upload(self, image: Image.Image) -> Optional[str]:
        """
        Upload an image and return its public link.

        Imgur is regularly down for maintenance or over capacity; any failure
        is logged and returned as None.
        """
        try:
            response = self.session.post(
                self.upload_url,
                data={"image": to_base64(image), "type": "base64"},
                timeout=settings.REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            link = response.json()["data"]["link"]
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Imgur upload failed: {e}")
            return None

        parsed = urlparse(link or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.warning(f"Imgur returned an invalid link: {link!r}")
            return None

        logger.info(f"Uploaded translated image: {link}")
        return link
