"""Download and decode submission images."""
from io import BytesIO
from typing import Optional

import requests
from PIL import Image

from src import settings
from src.logging_conf import logger

# Modes the PNG encoder and ImageDraw handle without conversion
NATIVE_MODES = ("RGB", "RGBA")


def fetch_image(url: str, session: Optional[requests.Session] = None) -> Optional[Image.Image]:
    """
    Download and decode the image behind url.

    Dead links, unreachable hosts and undecodable data are expected, so
    they are logged and reported as None rather than raised.

    Returns:
        The decoded image in RGB or RGBA mode, or None on any failure
    """
    http = session or requests
    try:
        response = http.get(url, timeout=settings.REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.info(f"Could not download {url}: {e}")
        return None

    try:
        image = Image.open(BytesIO(response.content))
        image.load()
        image = normalize_mode(image)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.info(f"Could not decode image at {url}: {e}")
        return None

    logger.debug(f"Downloaded {url}: {image.width}x{image.height} {image.mode}")
    return image


def normalize_mode(image: Image.Image) -> Image.Image:
    """Convert CMYK, palette, greyscale and other modes to RGB, or RGBA when transparent."""
    if image.mode in NATIVE_MODES:
        return image
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")
