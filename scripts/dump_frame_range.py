#!/usr/bin/env python3
import cv2
import math
import os
import re
import argparse
from pathlib import Path

from frame_sampler import SamplerError, SamplingMode, TimeRange, plan, produce_sequence
from timecode import format_time, parse_time

# ===============================
# CONFIGURATION
# ===============================

MAX_FRAMES = 50            # most frames a single dump writes
SHORT_THRESHOLD = 2.0      # seconds; ranges this short are dumped frame by frame
OUTPUT_DIR = os.path.join("~", "frame_dumps")   # '~' is expanded
OUTPUT_FORMAT = "png"      # any extension cv2.imwrite understands (png, jpg, webp)

# ===============================

UNSAFE_NAME_CHARS = re.compile(r'[<>:\\/|?*\[\]]')


def safe_video_name(video_path):
    """Video file name without extension, safe to use inside a file name."""
    name = Path(video_path).stem if video_path else ""
    name = UNSAFE_NAME_CHARS.sub("_", name)
    return name or "video"


def frame_filename(output_dir, video_name, frame_num, output_format=OUTPUT_FORMAT):
    return os.path.join(output_dir, f"{video_name}_frame_{frame_num:07d}.{output_format}")


def resolve_output_dir(output_dir):
    """Expand '~' and make sure the directory exists."""
    output_dir = os.path.expanduser(output_dir)
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def read_frame(cap):
    """Decode the next frame. Returns (frame, seconds, frame_num) or (None, None, None) at end of stream."""
    ret, frame = cap.read()
    if not ret:
        return None, None, None
    t = cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
    # POS_FRAMES points at the frame after the one just decoded
    pos = cap.get(cv2.CAP_PROP_POS_FRAMES)
    frame_num = int(pos) - 1 if pos and pos > 0 else math.floor(t * 1000)
    return frame, t, frame_num


def seek(cap, seconds):
    cap.set(cv2.CAP_PROP_POS_MSEC, seconds * 1000.0)


def seek_frame(cap, seconds, fps):
    """Seek so the next read returns the frame on screen at `seconds`, the one at or before it."""
    if not fps or fps <= 0:
        seek(cap, seconds)
        return
    cap.set(cv2.CAP_PROP_POS_FRAMES, math.floor(seconds * fps + 1e-6))


def have_image_writer(output_format):
    return bool(output_format) and cv2.haveImageWriter(f"frame.{output_format}")


def dump_frames(cap, time_range, output_dir, video_name,
                max_frames=MAX_FRAMES, short_threshold=SHORT_THRESHOLD,
                output_format=OUTPUT_FORMAT):
    """Write the frames the sampler picks from time_range. Returns the number written.

    Returns None when OpenCV cannot write images in output_format.
    Raises SamplerError when the range or limits are unusable.
    """
    sampling_plan = plan(time_range, max_frames, short_threshold)
    if not have_image_writer(output_format):
        print(f"Error: OpenCV cannot write '{output_format}' images")
        return None
    output_dir = resolve_output_dir(output_dir)

    if sampling_plan.mode is SamplingMode.EVERY_FRAME:
        print(f"Dumping every frame from {format_time(time_range.start)} "
              f"to {format_time(time_range.end)} (at most {max_frames})")
    else:
        print(f"Dumping {max_frames} frames from {format_time(time_range.start)} "
              f"to {format_time(time_range.end)}, one every {sampling_plan.step:.3f}s")
    print(f"Output: {output_dir}")

    fps = cap.get(cv2.CAP_PROP_FPS)
    seek(cap, time_range.start)

    current = None
    current_num = None

    def frame_advance():
        nonlocal current, current_num
        current, t, current_num = read_frame(cap)
        return t

    saved = 0
    for sample in produce_sequence(sampling_plan, time_range, frame_advance):
        if sampling_plan.mode is SamplingMode.FIXED_STEP:
            seek_frame(cap, sample.time, fps)
            current, t, current_num = read_frame(cap)
            if current is None or t > time_range.end:
                break

        out_path = frame_filename(output_dir, video_name, current_num, output_format)
        if not cv2.imwrite(out_path, current):
            print(f"  Could not write {out_path}")
            continue
        saved += 1

        # Progress indicator
        if saved % 10 == 0:
            print(f"  Dumped {saved}/{max_frames} frames...")

    print(f"Dumped {saved} frames from {video_name} → {output_dir}")
    return saved


def dump_frame_range(video_path, start, end, output_dir=OUTPUT_DIR,
                     max_frames=MAX_FRAMES, short_threshold=SHORT_THRESHOLD,
                     output_format=OUTPUT_FORMAT):
    """Dump frames between start and end (seconds) of a video file."""
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        print(f"Could not open {video_path}")
        return None

    fps = cap.get(cv2.CAP_PROP_FPS)
    total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
    print(f"Video: {total_frames} frames, {fps:.2f} fps")

    try:
        return dump_frames(cap, TimeRange(start, end), output_dir,
                           safe_video_name(video_path), max_frames,
                           short_threshold, output_format)
    except SamplerError as e:
        print(f"Error: {e}")
        return None
    finally:
        cap.release()


def main():
    parser = argparse.ArgumentParser(description="Dump a bounded number of frames between two timestamps of a video")
    parser.add_argument("--video", type=str, required=True,
                       help="Path to input video file")
    parser.add_argument("--start", type=parse_time, required=True,
                       help="Start point (hh:mm:ss.ms, mm:ss or seconds)")
    parser.add_argument("--end", type=parse_time, required=True,
                       help="End point (hh:mm:ss.ms, mm:ss or seconds)")
    parser.add_argument("--output", type=str, default=OUTPUT_DIR,
                       help=f"Output directory (default: {OUTPUT_DIR})")
    parser.add_argument("--format", type=str, default=OUTPUT_FORMAT,
                       help=f"Image format (default: {OUTPUT_FORMAT})")
    parser.add_argument("--max-frames", type=int, default=MAX_FRAMES,
                       help=f"Most frames to dump (default: {MAX_FRAMES})")
    parser.add_argument("--short-threshold", type=float, default=SHORT_THRESHOLD,
                       help=f"Ranges up to this many seconds are dumped frame by frame (default: {SHORT_THRESHOLD})")
    parser.add_argument("--list", action="store_true",
                       help="List dumped frames when done")

    args = parser.parse_args()

    if not os.path.exists(args.video):
        print(f"Video file not found: {args.video}")
        return

    saved = dump_frame_range(args.video, args.start, args.end, args.output,
                             args.max_frames, args.short_threshold, args.format)
    if saved is None:
        return

    if args.list:
        output_dir = os.path.expanduser(args.output)
        pattern = f"{safe_video_name(args.video)}_frame_*.{args.format}"
        frame_files = sorted(Path(output_dir).glob(pattern))
        print(f"\n{len(frame_files)} frames in {output_dir}:")
        for frame_file in frame_files[:10]:  # Show first 10
            print(f"  {frame_file.name}")
        if len(frame_files) > 10:
            print(f"  ... and {len(frame_files) - 10} more")


if __name__ == "__main__":
    main()
