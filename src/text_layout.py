"""Fit translated text into fixed-size regions by shrinking the font."""
import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from PIL import ImageFont

from src import settings
from src.logging_conf import logger

# (text, font_size) -> rendered width in pixels
MeasureFn = Callable[[str, int], float]


class TextDoesNotFitError(Exception):
    """Raised when text does not fit its box even at the minimum font size."""


@dataclass(frozen=True)
class TextBox:
    offset_x: float
    start_y: float
    max_width: float
    max_height: float


@dataclass(frozen=True)
class LaidOutLine:
    text: str
    offset_y: float  # Baseline
    font_size: int


@dataclass
class FittedText:
    lines: List[LaidOutLine]
    font_size: int
    line_height: float
    attempted_sizes: List[float] = field(default_factory=list)


class FontLoader:
    """Loads fonts by pixel size, falling back to Pillow's bundled font."""

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path or settings.FONT_PATH
        self._cache: Dict[int, ImageFont.ImageFont] = {}
        self._lock = threading.Lock()
        self._warned = False

    def get(self, size: int):
        size = max(1, int(size))
        with self._lock:
            font = self._cache.get(size)
            if font is None:
                font = self._load(size)
                self._cache[size] = font
        return font

    def measure(self, text: str, size: int) -> float:
        return self.get(size).getlength(text)

    def _load(self, size: int):
        try:
            return ImageFont.truetype(self.font_path, size)
        except OSError:
            if not self._warned:
                logger.warning(f"Could not open font {self.font_path}; using Pillow default font")
                self._warned = True
            return ImageFont.load_default(size=size)


class TextLayoutEngine:
    """
    Greedy word wrapper with whole-string shrink-and-retry.

    A layout attempt either places every word or fails; on failure the whole
    string is laid out again from scratch at a smaller size. Line breaks are
    not carried over between attempts.
    """

    def __init__(
        self,
        measure: MeasureFn,
        line_height_multiplier: Optional[float] = None,
        shrink_factor: Optional[float] = None,
        min_font_size: Optional[float] = None,
    ):
        if line_height_multiplier is None:
            line_height_multiplier = settings.LINE_HEIGHT_MULTIPLIER
        if shrink_factor is None:
            shrink_factor = settings.FONT_SHRINK_FACTOR
        if min_font_size is None:
            min_font_size = settings.MIN_FONT_SIZE
        if not 0 < shrink_factor < 1:
            raise ValueError(f"shrink_factor must be between 0 and 1: {shrink_factor}")
        if min_font_size < 1:
            raise ValueError(f"min_font_size must be at least 1: {min_font_size}")
        self.measure = measure
        self.line_height_multiplier = line_height_multiplier
        self.shrink_factor = shrink_factor
        self.min_font_size = min_font_size

    def line_height(self, font_size: float) -> float:
        return math.floor(font_size) * self.line_height_multiplier

    def fit(self, text: str, box: TextBox, start_font_size: float) -> FittedText:
        """
        Lay out text in box, shrinking from start_font_size until it fits.

        Raises:
            TextDoesNotFitError: if no size at or above min_font_size fits
        """
        attempted: List[float] = []
        font_size = float(start_font_size)

        while font_size >= self.min_font_size:
            attempted.append(font_size)
            lines = self.layout(text, box, font_size)
            if lines is not None:
                if len(attempted) > 1:
                    logger.debug(f"Fitted {text!r} at {math.floor(font_size)}px after {len(attempted)} attempts")
                return FittedText(
                    lines=lines,
                    font_size=math.floor(font_size),
                    line_height=self.line_height(font_size),
                    attempted_sizes=attempted,
                )
            font_size *= self.shrink_factor

        raise TextDoesNotFitError(
            f"{text!r} does not fit {box.max_width:g}x{box.max_height:g} "
            f"at or above {self.min_font_size}px"
        )

    def layout(self, text: str, box: TextBox, font_size: float) -> Optional[List[LaidOutLine]]:
        """Single layout attempt. Returns None if text does not fit at this size."""
        words = text.split()
        if not words:
            return []

        size = math.floor(font_size)
        line_height = self.line_height(font_size)
        bottom = box.start_y + box.max_height
        offset_y = box.start_y + line_height
        if offset_y > bottom:
            return None

        current_line = words[0]
        if self.measure(current_line, size) > box.max_width:
            return None

        if len(words) == 1:
            return [LaidOutLine(current_line, offset_y, size)]

        lines: List[LaidOutLine] = []
        for word in words[1:]:
            if self.measure(word, size) > box.max_width:
                return None

            next_line = f"{current_line} {word}"
            if self.measure(next_line, size) < box.max_width:
                current_line = next_line
                continue

            lines.append(LaidOutLine(current_line, offset_y, size))
            current_line = word
            offset_y += line_height
            if offset_y > bottom:
                return None

        lines.append(LaidOutLine(current_line, offset_y, size))
        return lines


def box_from_bounds(min_x: float, min_y: float, max_x: float, max_y: float) -> TextBox:
    """Build a TextBox from corner coordinates."""
    return TextBox(
        offset_x=min_x,
        start_y=min_y,
        max_width=max(0.0, max_x - min_x),
        max_height=max(0.0, max_y - min_y),
    )
