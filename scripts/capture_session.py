#!/usr/bin/env python3
import time

from frame_sampler import InvalidRange, TimeRange
from timecode import format_time

MESSAGE_DURATION = 1.0  # seconds a status message stays on screen


class CaptureSession:
    """Marks, menu state and status message of one frame dumper window."""

    def __init__(self, clock=time.monotonic):
        self.start_time = None
        self.end_time = None
        self.menu_active = False
        self.paused = False
        self._clock = clock
        self._message = None
        self._message_until = 0.0

    @property
    def ready(self):
        return self.start_time is not None and self.end_time is not None

    def mark_start(self, t):
        self.start_time = t
        # If end is before new start, reset end.
        if self.end_time is not None and self.end_time <= t:
            self.end_time = None

    def mark_end(self, t):
        if self.start_time is not None and t <= self.start_time:
            self.show_message("Error: End point must be after the start point.", 2)
            return False
        self.end_time = t
        return True

    def reset_marks(self):
        self.start_time = None
        self.end_time = None

    def time_range(self):
        if not self.ready:
            raise InvalidRange("Both start and end points must be set.")
        if self.end_time <= self.start_time:
            raise InvalidRange(
                f"end ({self.end_time}) must be after start ({self.start_time})")
        return TimeRange(self.start_time, self.end_time)

    def toggle_menu(self):
        self.menu_active = not self.menu_active
        self.show_message(f"Frame Dumper Menu: {'ON' if self.menu_active else 'OFF'}")
        return self.menu_active

    def show_message(self, text, duration=MESSAGE_DURATION):
        self._message = text
        self._message_until = self._clock() + duration

    def current_message(self):
        if self._message is not None and self._clock() >= self._message_until:
            self._message = None
        return self._message

    def menu_lines(self, toggle_key):
        lines = [
            "Frame Dumper Menu",
            "",
            f"  Start Point: {format_time(self.start_time)}",
            f"  End Point:   {format_time(self.end_time)}",
            "",
            "Controls:",
            "  [s]   - Mark current frame as START",
            "  [e]   - Mark current frame as END",
        ]
        if self.ready:
            lines.append("  [d]   - DUMP frames between start and end")
        lines.append(f"  [{toggle_key}] - Close this menu")
        return lines
