"""Paint translated text over the original text regions of an image."""
import base64
from io import BytesIO
from typing import Iterable, Optional

from PIL import Image, ImageDraw

from src import settings
from src.logging_conf import logger
from src.text_layout import FontLoader, FittedText, TextDoesNotFitError, TextLayoutEngine, box_from_bounds
from src.translation_client import TranslationRegion


class CompositingEngine:
    """Draws a rounded "bubble" over each region, then the fitted translation on top."""

    def __init__(
        self,
        layout_engine: Optional[TextLayoutEngine] = None,
        font_loader: Optional[FontLoader] = None,
        corner_radius: Optional[float] = None,
        max_font_size: Optional[float] = None,
        background: str = "white",
        foreground: str = "black",
    ):
        self.font_loader = font_loader or FontLoader()
        self.layout_engine = layout_engine or TextLayoutEngine(self.font_loader.measure)
        self.corner_radius = settings.BUBBLE_RADIUS if corner_radius is None else corner_radius
        self.max_font_size = settings.MAX_FONT_SIZE if max_font_size is None else max_font_size
        self.background = background
        self.foreground = foreground

    def composite(self, image: Image.Image, regions: Iterable[TranslationRegion]) -> Image.Image:
        """Return a copy of image with every non-empty region overlaid."""
        canvas = image.convert("RGBA")
        draw = ImageDraw.Draw(canvas)
        regions = [r for r in regions if r.has_text]

        # All bubbles first so no bubble covers a neighbour's text.
        for region in regions:
            self.draw_bubble(draw, region)

        drawn = 0
        for region in regions:
            fitted = self.fit_region(region)
            if fitted is None:
                continue
            self.draw_text(draw, region, fitted)
            drawn += 1

        logger.info(f"Composited {drawn}/{len(regions)} regions")
        return canvas

    def bubble_radius(self, region: TranslationRegion) -> float:
        return min(self.corner_radius, region.width / 2, region.height / 2)

    def draw_bubble(self, draw: ImageDraw.ImageDraw, region: TranslationRegion) -> None:
        draw.rounded_rectangle(
            (region.min_x, region.min_y, region.min_x + region.width, region.min_y + region.height),
            radius=self.bubble_radius(region),
            fill=self.background,
        )

    def fit_region(self, region: TranslationRegion) -> Optional[FittedText]:
        box = box_from_bounds(region.min_x, region.min_y, region.max_x, region.max_y)
        try:
            return self.layout_engine.fit(region.translated_text, box, self.max_font_size)
        except TextDoesNotFitError as e:
            logger.warning(f"Leaving bubble empty: {e}")
            return None

    def draw_text(self, draw: ImageDraw.ImageDraw, region: TranslationRegion, fitted: FittedText) -> None:
        font = self.font_loader.get(fitted.font_size)
        for line in fitted.lines:
            # Offsets are baselines, hence the left-baseline anchor.
            draw.text((region.min_x, line.offset_y), line.text, fill=self.foreground, font=font, anchor="ls")


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_base64(image: Image.Image) -> str:
    return base64.b64encode(to_png_bytes(image)).decode("ascii")


def to_data_url(image: Image.Image) -> str:
    return f"data:image/png;base64,{to_base64(image)}"
