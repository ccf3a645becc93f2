import os

import cv2
import pytest

from dump_frame_range import (dump_frame_range, dump_frames, frame_filename, read_frame,
                              resolve_output_dir, safe_video_name)
from frame_sampler import InvalidConfig, InvalidRange, TimeRange


def dumped(output_dir):
    return sorted(p.name for p in output_dir.glob("*.png"))


def test_safe_video_name():
    assert safe_video_name("/videos/a<b>:c[1].mp4") == "a_b__c_1_"
    assert safe_video_name("clips/match.final.mkv") == "match.final"
    assert safe_video_name("") == "video"


def test_frame_filename():
    assert frame_filename("out", "clip", 42, "jpg") == os.path.join("out", "clip_frame_0000042.jpg")


def test_resolve_output_dir_expands_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    out = resolve_output_dir(os.path.join("~", "dumps", "a"))
    assert out == str(tmp_path / "dumps" / "a")
    assert os.path.isdir(out)


def test_read_frame_reports_index_and_time(fake_capture):
    cap = fake_capture(fps=25.0)
    cap.set(cv2.CAP_PROP_POS_FRAMES, 10)
    frame, t, frame_num = read_frame(cap)
    assert frame is not None
    assert t == pytest.approx(0.4)
    assert frame_num == 10


def test_read_frame_falls_back_to_milliseconds(fake_capture):
    class NoFrameIndex(fake_capture):
        def get(self, prop):
            if prop == cv2.CAP_PROP_POS_FRAMES:
                return 0.0
            return super().get(prop)

    cap = NoFrameIndex(fps=25.0)
    cap.set(cv2.CAP_PROP_POS_MSEC, 1000)
    _, t, frame_num = read_frame(cap)
    assert t == pytest.approx(1.0)
    assert frame_num == 1000


def test_read_frame_end_of_stream(fake_capture):
    cap = fake_capture(total_frames=1)
    read_frame(cap)
    assert read_frame(cap) == (None, None, None)


def test_short_range_dumps_every_frame(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0)
    saved = dump_frames(cap, TimeRange(1.0, 1.5), str(tmp_path), "clip")
    assert saved == 13
    names = dumped(tmp_path)
    assert names[0] == "clip_frame_0000025.png"
    assert names[-1] == "clip_frame_0000037.png"
    assert len(names) == 13


def test_short_range_capped_at_max_frames(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0)
    saved = dump_frames(cap, TimeRange(0.0, 2.0), str(tmp_path), "clip", max_frames=10)
    assert saved == 10
    assert dumped(tmp_path)[-1] == "clip_frame_0000009.png"


def test_short_range_stops_at_end_of_video(fake_capture, tmp_path):
    cap = fake_capture(total_frames=30, fps=25.0)
    saved = dump_frames(cap, TimeRange(1.0, 1.9), str(tmp_path), "clip")
    assert saved == 5


def test_long_range_dumps_evenly_spaced_frames(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0)
    saved = dump_frames(cap, TimeRange(0.0, 10.0), str(tmp_path), "clip")
    assert saved == 50
    names = dumped(tmp_path)
    assert len(names) == 50
    assert names[0] == "clip_frame_0000000.png"
    assert names[-1] == "clip_frame_0000250.png"


def test_long_range_stops_at_end_of_video(fake_capture, tmp_path):
    cap = fake_capture(total_frames=100, fps=25.0)
    saved = dump_frames(cap, TimeRange(0.0, 10.0), str(tmp_path), "clip")
    assert saved == 20


def test_output_format(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0)
    dump_frames(cap, TimeRange(0.0, 0.1), str(tmp_path), "clip", output_format="jpg")
    assert sorted(p.name for p in tmp_path.glob("*.jpg")) == [
        "clip_frame_0000000.jpg", "clip_frame_0000001.jpg", "clip_frame_0000002.jpg"]


def test_written_frames_are_readable(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0, width=16, height=8)
    dump_frames(cap, TimeRange(0.2, 0.2 + 0.01), str(tmp_path), "clip")
    img = cv2.imread(str(tmp_path / "clip_frame_0000005.png"))
    assert img.shape == (8, 16, 3)
    assert int(img[0, 0, 0]) == 5


def test_invalid_range_raises(fake_capture, tmp_path):
    with pytest.raises(InvalidRange):
        dump_frames(fake_capture(), TimeRange(5.0, 5.0), str(tmp_path), "clip")


def test_invalid_config_raises(fake_capture, tmp_path):
    with pytest.raises(InvalidConfig):
        dump_frames(fake_capture(), TimeRange(0.0, 5.0), str(tmp_path), "clip", max_frames=1)


def test_dump_frame_range_missing_video(tmp_path):
    assert dump_frame_range(str(tmp_path / "missing.mp4"), 0.0, 1.0, str(tmp_path / "out")) is None


def test_long_range_keeps_last_frame_between_frame_boundaries(fake_capture, tmp_path):
    cap = fake_capture(fps=25.0)
    saved = dump_frames(cap, TimeRange(0.0, 10.01), str(tmp_path), "clip")
    assert saved == 50
    assert dumped(tmp_path)[-1] == "clip_frame_0000250.png"


def test_unknown_format_is_rejected_before_writing(fake_capture, tmp_path):
    out = tmp_path / "out"
    cap = fake_capture()
    assert dump_frames(cap, TimeRange(0.0, 0.1), str(out), "clip", output_format="xyz") is None
    assert not out.exists()
    assert cap.reads == 0


def test_failed_writes_are_not_counted(fake_capture, tmp_path, monkeypatch):
    monkeypatch.setattr(cv2, "imwrite", lambda path, img: False)
    saved = dump_frames(fake_capture(fps=25.0), TimeRange(0.0, 0.1), str(tmp_path), "clip")
    assert saved == 0
