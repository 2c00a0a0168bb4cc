import re

_EXERCISE_SEPARATORS = re.compile(r"[,\n]")


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS (negative values show as 00:00)."""
    seconds = max(0, seconds)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def parse_exercises(text: str) -> list[str]:
    """Split a comma- or newline-separated exercise list, dropping blanks."""
    return [part.strip() for part in _EXERCISE_SEPARATORS.split(text) if part.strip()]
