import random
import re
import string
from typing import List, Optional

_WHITESPACE = re.compile(r"\s+")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def split_words(label: str) -> List[str]:
    """Split on whitespace runs; leading/trailing whitespace yields no empty words."""
    if not label:
        return []
    return [word for word in _WHITESPACE.split(label.strip()) if word]


def casefold_contains(text: str, query: str) -> bool:
    if not query:
        return True
    return query.casefold() in (text or "").casefold()


def coerce_int(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return default


def clamp_int(value, default: int, low: int, high: int) -> int:
    return max(low, min(high, coerce_int(value, default)))


def new_node_id(rng: Optional[random.Random] = None) -> str:
    pick = rng or random
    return "genid-" + "".join(pick.choice(_ID_ALPHABET) for _ in range(9))
