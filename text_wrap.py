import logging
import tkinter as tk
from typing import Callable, List, Optional, Sequence, Tuple

from utils import split_words

logger = logging.getLogger(__name__)

# measure(label, font_size) -> pixel width, supplied by the rendering surface.
MeasureFn = Callable[[str, int], float]

# Fallback per-character width factor when no measurement is available.
FALLBACK_CHAR_FACTOR = 0.75
LINE_HEIGHT_FACTOR = 1.1


def fallback_width(label: str, font_size: int) -> float:
    return len(label) * font_size * FALLBACK_CHAR_FACTOR


def safe_measure(measure: Optional[MeasureFn], label: str, font_size: int) -> float:
    if measure is None:
        return fallback_width(label, font_size)
    try:
        width = measure(label, font_size)
    except (tk.TclError, RuntimeError) as exc:
        logger.debug("Text measurement unavailable (%s); using estimate", exc)
        return fallback_width(label, font_size)
    if isinstance(width, bool) or not isinstance(width, (int, float)) or width < 0:
        return fallback_width(label, font_size)
    return float(width)


def wrap_label(label: str, max_width: float, measure: Optional[MeasureFn], font_size: int = 10) -> List[str]:
    """Greedy word wrap. Always returns at least one line."""
    lines: List[str] = []
    current: List[str] = []
    for word in split_words(label):
        candidate = " ".join(current + [word])
        if current and safe_measure(measure, candidate, font_size) > max_width:
            lines.append(" ".join(current))
            current = [word]
        else:
            current.append(word)
    lines.append(" ".join(current))
    return lines


def line_height(font_size: int) -> float:
    return font_size * LINE_HEIGHT_FACTOR * 4 / 3


def measure_block(lines: Sequence[str], measure: Optional[MeasureFn], font_size: int) -> Tuple[float, float]:
    width = max((safe_measure(measure, line, font_size) for line in lines), default=0.0)
    return width, line_height(font_size) * max(1, len(lines))
