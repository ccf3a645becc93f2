#!/usr/bin/env python3
import cv2
import argparse
import os

from capture_session import CaptureSession
from dump_frame_range import (MAX_FRAMES, OUTPUT_DIR, OUTPUT_FORMAT, SHORT_THRESHOLD,
                              dump_frames, have_image_writer, read_frame,
                              safe_video_name, seek)
from frame_sampler import SamplerError

KEY_TOGGLE_MENU = "h"
WINDOW_NAME = "frame_dumper"
BACK_FRAMES = 30

MENU_COLOR = (255, 255, 255)
OUTLINE_COLOR = (64, 64, 64)
MESSAGE_COLOR = (0, 255, 255)


def _put_outlined_text(img, text, org, scale, color, thickness=2):
    cv2.putText(img, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, OUTLINE_COLOR, thickness + 3)
    cv2.putText(img, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness)


def draw_overlay(frame, session, toggle_key=KEY_TOGGLE_MENU):
    """Menu in the top-left corner, status message in the bottom-left."""
    display = frame.copy()
    if session.menu_active:
        y = 35
        for i, line in enumerate(session.menu_lines(toggle_key)):
            if line:
                scale = 0.9 if i == 0 else 0.65
                _put_outlined_text(display, line, (10, y), scale, MENU_COLOR)
            y += 28

    message = session.current_message()
    if message:
        lines = message.split("\n")
        y = display.shape[0] - 20 - 28 * (len(lines) - 1)
        for line in lines:
            _put_outlined_text(display, line, (10, y), 0.65, MESSAGE_COLOR)
            y += 28
    return display


class FrameDumper:
    """Plays a video in an OpenCV window and dumps frames between two marked points."""

    def __init__(self, cap, video_name, output_dir=OUTPUT_DIR, output_format=OUTPUT_FORMAT,
                 max_frames=MAX_FRAMES, short_threshold=SHORT_THRESHOLD,
                 toggle_key=KEY_TOGGLE_MENU, session=None):
        self.cap = cap
        self.video_name = video_name
        self.output_dir = output_dir
        self.output_format = output_format
        self.max_frames = max_frames
        self.short_threshold = short_threshold
        self.toggle_key = toggle_key
        self.session = session or CaptureSession()
        self.frame = None
        self.time_pos = None
        self.need_read = True
        self.window_open = False

    def advance(self):
        """Read the next frame unless paused. Returns False when there is nothing to show."""
        if self.session.paused and not self.need_read:
            return self.frame is not None
        frame, t, _ = read_frame(self.cap)
        self.need_read = False
        if frame is None:
            if self.frame is None:
                return False
            # hold the last frame at end of video
            self.session.paused = True
            return True
        self.frame = frame
        self.time_pos = t
        return True

    def handle_key(self, key):
        """Apply a key press. Returns False to quit."""
        if key == ord(self.toggle_key):
            self.session.toggle_menu()
        elif key == ord(" "):
            self.session.paused = not self.session.paused
        elif key == ord("b"):
            current_frame = self.cap.get(cv2.CAP_PROP_POS_FRAMES)
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, max(0, current_frame - 1 - BACK_FRAMES))
            self.need_read = True
        elif key == ord("q"):
            return False
        elif not self.session.menu_active or self.time_pos is None:
            pass
        elif key == ord("s"):
            self.session.mark_start(self.time_pos)
        elif key == ord("e"):
            self.session.mark_end(self.time_pos)
        elif key == ord("d"):
            self.dump()
        return True

    def dump(self):
        """Dump the marked range. Returns the number of frames written, or None."""
        session = self.session
        if not session.ready:
            session.show_message("Error: Both start and end points must be set.")
            return None

        session.toggle_menu()
        was_paused = session.paused
        session.paused = True
        print("Starting frame dump...")
        session.show_message("Starting frame dump...", 3)
        self.repaint()

        try:
            time_range = session.time_range()
            saved = dump_frames(self.cap, time_range, self.output_dir, self.video_name,
                                self.max_frames, self.short_threshold, self.output_format)
        except SamplerError as e:
            print(f"Error: {e}")
            session.show_message(f"Error: {e}", 3)
            return None
        finally:
            session.paused = was_paused

        if saved is None:
            session.show_message(f"Error: cannot write '{self.output_format}' images", 3)
            return None

        output_dir = os.path.expanduser(self.output_dir)
        session.show_message(f"Finished: Dumped {saved} frames to\n{output_dir}", 5)
        # resume from the end point
        seek(self.cap, time_range.end)
        self.need_read = True
        session.reset_marks()
        return saved

    def repaint(self):
        """Show the current frame and overlay right away, ahead of blocking work."""
        if not self.window_open or self.frame is None:
            return
        cv2.imshow(WINDOW_NAME, draw_overlay(self.frame, self.session, self.toggle_key))
        cv2.waitKey(1)

    def run(self):
        fps = self.cap.get(cv2.CAP_PROP_FPS)
        base_delay_ms = max(1, int(1000.0 / fps)) if fps and fps > 0 else 30

        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(WINDOW_NAME, 1280, 720)  # Set reasonable default size
        self.window_open = True

        while self.advance():
            cv2.imshow(WINDOW_NAME, draw_overlay(self.frame, self.session, self.toggle_key))
            delay_ms = 30 if self.session.paused else base_delay_ms
            key = cv2.waitKey(delay_ms) & 0xFF
            if key != 255 and not self.handle_key(key):
                break

        cv2.destroyAllWindows()


def main():
    parser = argparse.ArgumentParser(description="Play a video and dump frames between two marked points")
    parser.add_argument("--video", type=str, required=True,
                        help="Path to input video file")
    parser.add_argument("--output", type=str, default=OUTPUT_DIR,
                        help=f"Output directory (default: {OUTPUT_DIR})")
    parser.add_argument("--format", type=str, default=OUTPUT_FORMAT,
                        help=f"Image format (default: {OUTPUT_FORMAT})")
    parser.add_argument("--max-frames", type=int, default=MAX_FRAMES,
                        help=f"Most frames per dump (default: {MAX_FRAMES})")
    parser.add_argument("--short-threshold", type=float, default=SHORT_THRESHOLD,
                        help=f"Ranges up to this many seconds are dumped frame by frame (default: {SHORT_THRESHOLD})")
    parser.add_argument("--key", type=str, default=KEY_TOGGLE_MENU,
                        help=f"Key that opens and closes the menu (default: {KEY_TOGGLE_MENU})")
    args = parser.parse_args()

    if len(args.key) != 1:
        print(f"Error: --key must be a single character, got {args.key!r}")
        return

    if not have_image_writer(args.format):
        print(f"Error: OpenCV cannot write '{args.format}' images")
        return

    cap = cv2.VideoCapture(args.video)
    if not cap.isOpened():
        print(f"Could not open {args.video}")
        return

    print(f"Frame Dumper: Keybinding '{args.key}' registered.")
    print("Controls: [space] = pause, [b] = back 30 frames, [q] = quit")
    print(f"  [{args.key}] = menu; in the menu [s] = mark start, [e] = mark end, [d] = dump")

    dumper = FrameDumper(cap, safe_video_name(args.video), args.output, args.format,
                         args.max_frames, args.short_threshold, args.key)
    try:
        dumper.run()
    finally:
        cap.release()


if __name__ == "__main__":
    main()
