import math

import cv2
import numpy as np
import pytest


class FakeCapture:
    """Stands in for cv2.VideoCapture over a synthetic constant-fps video."""

    def __init__(self, total_frames=500, fps=25.0, width=32, height=24):
        self.total_frames = total_frames
        self.fps = fps
        self.width = width
        self.height = height
        self.next_index = 0
        self.reads = 0
        self.released = False

    def isOpened(self):
        return not self.released

    def get(self, prop):
        if prop == cv2.CAP_PROP_FPS:
            return self.fps
        if prop == cv2.CAP_PROP_FRAME_COUNT:
            return float(self.total_frames)
        if prop == cv2.CAP_PROP_POS_FRAMES:
            return float(self.next_index)
        if prop == cv2.CAP_PROP_POS_MSEC:
            # timestamp of the frame decoded last
            return max(self.next_index - 1, 0) * 1000.0 / self.fps
        return 0.0

    def set(self, prop, value):
        if prop == cv2.CAP_PROP_POS_FRAMES:
            self.next_index = int(value)
        elif prop == cv2.CAP_PROP_POS_MSEC:
            # first frame at or after the requested time
            self.next_index = math.ceil(value / 1000.0 * self.fps - 1e-6)
        else:
            return False
        return True

    def read(self):
        if self.next_index >= self.total_frames:
            return False, None
        frame = np.full((self.height, self.width, 3), self.next_index % 256, np.uint8)
        self.next_index += 1
        self.reads += 1
        return True, frame

    def release(self):
        self.released = True


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fake_capture():
    return FakeCapture


@pytest.fixture
def clock():
    return FakeClock()
