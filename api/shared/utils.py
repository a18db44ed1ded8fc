"""Common helpers for ids, timestamps and message bodies."""
from datetime import datetime, timezone
from typing import Iterable, List


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def unique_ids(ids: Iterable[int]) -> List[int]:
    """Drop duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(int(i) for i in ids))


def direct_pair_key(user_a: int, user_b: int) -> str:
    """Order-independent key identifying a direct conversation's user pair."""
    low, high = sorted((int(user_a), int(user_b)))
    return f"{low}:{high}"


def is_blank(text: str) -> bool:
    return not text or not text.strip()
