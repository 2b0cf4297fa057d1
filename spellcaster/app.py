"""
Gesture Spellcaster - camera game loop and command-line entry point.

Architecture:
    CameraManager -> HandDetector -> GameSession.on_hand()
    monotonic clock -> GameSession.tick(delta_ms)
    GameSession.build_state() -> Renderer -> cv2.imshow

Usage:
    spellcaster                       # default camera and config
    spellcaster --camera 1            # pick another device
    spellcaster --list-cameras        # probe devices and exit
    spellcaster --no-audio            # silent mode

Keys:
    c  toggle camera (pauses the session)
    r  reset the session
    p  print performance report
    q  quit
"""

import sys
import time
import signal
import argparse
import logging

import cv2
import numpy as np

from spellcaster import __version__
from spellcaster.capture.camera_manager import CameraManager, list_cameras
from spellcaster.core.events import EventBus
from spellcaster.core.session import GameSession
from spellcaster.detection.hand_detector import HandDetector
from spellcaster.feedback.audio import SpellAudio
from spellcaster.utils.config import Config, ConfigError
from spellcaster.utils.logger import setup_logging, CombatLogger
from spellcaster.utils.performance_monitor import PerformanceMonitor
from spellcaster.visualization.renderer import Renderer

logger = logging.getLogger(__name__)


class SpellcasterApp:
    """Wires the camera, pose model, game session and sinks together."""

    def __init__(self, config: Config):
        self._config = config
        self._running = False
        self._camera_on = False
        self._last_frame_id = None

        self._bus = EventBus()
        self._session = GameSession(config, event_bus=self._bus)

        # The player sees a mirror image unless the camera already flips it
        self._mirror = bool(config.arena.get("mirror", True)) and \
            not config.camera.get("flip_horizontal", False)

        self._camera = CameraManager(config.camera)
        self._detector = HandDetector(
            config.mediapipe,
            screen_size=self._session.arena_size,
            mirror=self._mirror,
        )
        self._renderer = Renderer(config.visualization, event_bus=self._bus)
        self._audio = SpellAudio(config.audio, base_dir=config.base_dir, event_bus=self._bus)
        self._combat_log = CombatLogger(self._bus)
        self._perf = PerformanceMonitor()

        self._window_name = config.get("visualization.window_name", "Gesture Spellcaster")
        logger.info("SpellcasterApp initialized (%d spells)", len(self._session.spell_book))

    # =========================================================================
    # Camera toggle
    # =========================================================================

    def start_camera(self) -> bool:
        if self._camera_on:
            return True
        if not self._camera.open():
            logger.error("Failed to open camera. Check connection and permissions.")
            return False
        self._camera.start_async()
        self._last_frame_id = None

        w, h = self._camera.resolution
        self._session.set_arena_size(w, h)
        self._detector.set_screen_size(w, h)
        self._detector.initialize()

        self._session.start()
        self._camera_on = True
        return True

    def stop_camera(self):
        if not self._camera_on:
            return
        self._session.stop()
        self._camera.stop()
        self._detector.close()
        self._camera_on = False

    def toggle_camera(self):
        if self._camera_on:
            self.stop_camera()
        else:
            self.start_camera()

    # =========================================================================
    # Main loop
    # =========================================================================

    def run(self) -> bool:
        if not self.start_camera():
            return False

        self._running = True
        logger.info("Starting main loop")
        last = time.monotonic()

        while self._running:
            now = time.monotonic()
            delta_ms = (now - last) * 1000.0
            last = now
            self._perf.record_tick(delta_ms)

            frame = self._next_frame()
            with self._perf.stage("simulation"):
                self._session.tick(delta_ms)

            if self._config.get("visualization.enabled", True):
                with self._perf.stage("render"):
                    state = self._session.build_state()
                    state["fps"] = self._perf.fps
                    frame = self._renderer.render(frame, state)
                cv2.imshow(self._window_name, frame)

            self._handle_key(cv2.waitKey(1) & 0xFF)

        self._shutdown()
        return True

    def _next_frame(self) -> np.ndarray:
        """Latest camera frame, or a blank canvas.

        Pose detection runs once per camera frame; display ticks that see
        the same frame again only redraw it.
        """
        frame = None
        if self._camera_on:
            with self._perf.stage("capture"):
                frame_id, frame = self._camera.read()
            if frame is None:
                self._perf.record_missed_frame()
            else:
                if frame_id != self._last_frame_id:
                    self._last_frame_id = frame_id
                    with self._perf.stage("detection"):
                        observation = self._detector.detect(frame)
                    self._perf.record_detection(observation is not None)
                    with self._perf.stage("input"):
                        self._session.on_hand(observation)
                if self._mirror:
                    frame = cv2.flip(frame, 1)

        if frame is None:
            w, h = self._session.arena_size
            frame = np.zeros((h, w, 3), dtype=np.uint8)
        return frame

    def _handle_key(self, key: int):
        if key == ord("q"):
            self._running = False
        elif key == ord("c"):
            self.toggle_camera()
            logger.info("Camera %s", "on" if self._camera_on else "off")
        elif key == ord("r"):
            self._session.reset()
            logger.info("Session reset")
        elif key == ord("p"):
            self._perf.print_report()

    def _shutdown(self):
        """Clean shutdown of all modules."""
        logger.info("Shutting down...")
        self._running = False
        self.stop_camera()
        self._audio.close()
        cv2.destroyAllWindows()

        self._perf.print_report()
        logger.info("Casts: %d, hits: %d, defeats: %d",
                    self._combat_log.total_casts,
                    self._combat_log.count("hit"),
                    self._combat_log.count("defeat"))
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Gesture Spellcaster - cast spells with hand gestures"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--spells", type=str, default=None,
        help="Path to spells.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--list-cameras", action="store_true",
        help="List available camera devices and exit"
    )
    parser.add_argument(
        "--no-audio", action="store_true",
        help="Disable spell sounds"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = Config.load(config_path=args.config, spells_path=args.spells)

    if args.camera is not None:
        config.set("camera.device_id", args.camera)
    if args.no_audio:
        config.set("audio.enabled", False)
    if args.log_level:
        config.set("logging.level", args.log_level)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    if args.list_cameras:
        cameras = list_cameras(backend=config.camera.get("backend", "auto"))
        if not cameras:
            print("No cameras found")
            return 1
        for cam in cameras:
            print(f"  [{cam['device_id']}] {cam['width']}x{cam['height']}")
        return 0

    logger.info("=" * 60)
    logger.info("  GESTURE SPELLCASTER  v%s", __version__)
    logger.info("=" * 60)

    try:
        app = SpellcasterApp(config)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.run() else 1


if __name__ == "__main__":
    sys.exit(main())
