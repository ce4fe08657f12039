import math
import re


def format_time(seconds: float) -> str:
    """
    Format seconds as ``MM:SS.mmm``.

    Minutes are zero-padded to two digits and grow beyond that when needed.
    Milliseconds are truncated, not rounded. Negative input formats as zero.
    """
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    total_ms = int(math.floor(seconds * 1000 + 1e-6))
    minutes, remainder_ms = divmod(total_ms, 60_000)
    whole_seconds, milliseconds = divmod(remainder_ms, 1000)
    return f"{minutes:02d}:{whole_seconds:02d}.{milliseconds:03d}"


_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def parse_time(time_string: str) -> float:
    """
    Parse ``MM:SS.mmm`` back to seconds.

    Anything that is not exactly two colon-separated fields parses to 0.
    Each field reads its leading integer; unreadable fields count as 0.
    """
    if not isinstance(time_string, str):
        return 0.0
    parts = time_string.split(":")
    if len(parts) != 2:
        return 0.0

    minutes = _leading_int(parts[0])
    seconds_parts = parts[1].split(".")
    seconds = _leading_int(seconds_parts[0])
    milliseconds = _leading_int(seconds_parts[1]) if len(seconds_parts) > 1 else 0
    return minutes * 60 + seconds + milliseconds / 1000
