"""Human-like pacing delays for assistant replies.

The assistant pretends to read the user's message before it starts typing,
and pretends to type its reply before the reply appears. Both delays are
derived from text length at average human speeds and capped so a long
message never stalls a conversation.
"""

import time

from utils.constants import (
    MAX_READING_DELAY_MS,
    MAX_TYPING_DELAY_MS,
    MICROSECONDS_PER_MINUTE,
    READING_SPEED_WPM,
    TYPING_SPEED_CPM,
)


def count_words(text: str) -> int:
    """Count maximal runs of non-whitespace characters.

    Empty and whitespace-only text contain zero words.
    """
    return len(text.split())


def calculate_reading_time(text: str) -> float:
    """Return the time in microseconds an average reader needs for ``text``."""
    words_per_microsecond = READING_SPEED_WPM / MICROSECONDS_PER_MINUTE
    return count_words(text) / words_per_microsecond


def calculate_typing_time(text: str) -> float:
    """Return the time in microseconds an average typist needs for ``text``.

    Length is measured in code points, not graphemes.
    """
    characters_per_microsecond = TYPING_SPEED_CPM / MICROSECONDS_PER_MINUTE
    return len(text) / characters_per_microsecond


def _clamp_ms(microseconds: float, max_ms: float) -> float:
    return max(0.0, min(microseconds / 1000, max_ms))


def reading_delay_ms(text: str) -> float:
    """Reading delay for ``text`` in milliseconds, capped at 5 seconds."""
    return _clamp_ms(calculate_reading_time(text), MAX_READING_DELAY_MS)


def typing_delay_ms(text: str) -> float:
    """Typing delay for ``text`` in milliseconds, capped at 10 seconds."""
    return _clamp_ms(calculate_typing_time(text), MAX_TYPING_DELAY_MS)


def wait(milliseconds: float) -> None:
    """Suspend the current invocation for ``milliseconds``."""
    if milliseconds > 0:
        time.sleep(milliseconds / 1000)
