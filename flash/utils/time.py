import time


def unix_time_millis() -> int:
    """Current unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def days_to_millis(days: float) -> int:
    return int(days * 86_400_000)
