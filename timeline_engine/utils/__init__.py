from .time_format import format_time, parse_time

__all__ = ["format_time", "parse_time"]
