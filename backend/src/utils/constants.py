"""Shared constants for the chat responder backend."""

# Average human reading speed, words per minute
READING_SPEED_WPM: int = 250

# Average human typing speed, characters per minute
TYPING_SPEED_CPM: int = 200

# Upper bounds for the simulated pacing delays
MAX_READING_DELAY_MS: float = 5000
MAX_TYPING_DELAY_MS: float = 10000

MICROSECONDS_PER_MINUTE: int = 60 * 1_000_000

# Model used for completions unless OPENAI_MODEL overrides it
DEFAULT_COMPLETION_MODEL: str = "gpt-3.5-turbo"
