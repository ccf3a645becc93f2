#!/usr/bin/env python3


def parse_time(ts: str) -> float:
    """Parse timestamp (hh:mm:ss.ms, mm:ss.ms) or raw seconds (float) into total seconds."""
    ts = ts.strip()
    if ":" in ts:  # timestamp format
        parts = ts.split(":")
        if len(parts) == 3:
            h, m, s = parts
        elif len(parts) == 2:
            h = "0"
            m, s = parts
        else:
            raise ValueError(f"Invalid timestamp: {ts!r}")
        seconds = int(h) * 3600 + int(m) * 60 + float(s)
    else:  # plain seconds
        seconds = float(ts)
    if seconds < 0:
        raise ValueError(f"Timestamp must not be negative: {ts!r}")
    return seconds


def format_time(seconds) -> str:
    """Format seconds for the menu overlay, or 'Not set'."""
    if seconds is None:
        return "Not set"
    return f"{seconds:.3f}s"
