"""
Game loop timing.

The display loop runs faster than the camera, so each camera frame is
detected once and then drives several simulation ticks. This monitor
tracks both cadences side by side: display FPS from the per-tick delta
the loop already feeds the session, detection rate, how many ticks each
detection spans, how often a hand was actually in view, and the cost of
each loop stage.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# capture -> detection -> input (gesture + cast) -> simulation -> render
LOOP_STAGES = ("capture", "detection", "input", "simulation", "render")


class RollingMean:
    """Mean over the last N samples."""

    __slots__ = ("_samples",)

    def __init__(self, size: int):
        self._samples = deque(maxlen=size)

    def add(self, value: float):
        self._samples.append(value)

    @property
    def mean(self) -> float:
        if not self._samples:
            return 0.0
        return sum(self._samples) / len(self._samples)

    def __len__(self):
        return len(self._samples)


class PerformanceMonitor:
    """Display-tick and detection-cycle bookkeeping for SpellcasterApp.

    Only the main loop calls into it; the capture thread never does.
    """

    def __init__(self, window_size: int = 100, clock=time.perf_counter):
        self._window = window_size
        self._clock = clock

        self._tick_ms = RollingMean(window_size)
        self._ticks_per_detection = RollingMean(window_size)
        self._hand_seen = RollingMean(window_size)
        self._stages = {name: RollingMean(window_size) for name in LOOP_STAGES}

        self._ticks = 0
        self._ticks_since_detection = 0
        self._detections = 0
        self._last_detection_at = None
        self._detection_gap_ms = RollingMean(window_size)
        self._missed_frames = 0

    # =========================================================================
    # Recording
    # =========================================================================

    def record_tick(self, delta_ms: float):
        """One display frame, with the delta handed to GameSession.tick()."""
        self._ticks += 1
        self._ticks_since_detection += 1
        if delta_ms > 0:
            self._tick_ms.add(delta_ms)

    def record_detection(self, hand_found: bool):
        """One pose-detection cycle on a fresh camera frame."""
        now = self._clock()
        if self._last_detection_at is not None:
            self._detection_gap_ms.add((now - self._last_detection_at) * 1000.0)
            self._ticks_per_detection.add(self._ticks_since_detection)
        self._last_detection_at = now
        self._ticks_since_detection = 0
        self._detections += 1
        self._hand_seen.add(1.0 if hand_found else 0.0)

    def record_missed_frame(self):
        """The camera had no frame at all for this tick."""
        self._missed_frames += 1

    @contextmanager
    def stage(self, name: str):
        """Time one loop stage."""
        start = self._clock()
        try:
            yield
        finally:
            cost = (self._clock() - start) * 1000.0
            if name not in self._stages:
                self._stages[name] = RollingMean(self._window)
            self._stages[name].add(cost)

    # =========================================================================
    # Reading
    # =========================================================================

    @property
    def fps(self) -> float:
        """Display frames per second."""
        mean = self._tick_ms.mean
        return 1000.0 / mean if mean > 0 else 0.0

    @property
    def detection_rate(self) -> float:
        """Pose-detection cycles per second."""
        mean = self._detection_gap_ms.mean
        return 1000.0 / mean if mean > 0 else 0.0

    @property
    def hand_presence(self) -> float:
        """Fraction of recent detections that found a hand."""
        return self._hand_seen.mean

    @property
    def tick_count(self) -> int:
        return self._ticks

    @property
    def detection_count(self) -> int:
        return self._detections

    def stage_cost(self, name: str) -> float:
        """Mean cost of a stage in ms, 0 if never timed."""
        window = self._stages.get(name)
        return window.mean if window is not None else 0.0

    def get_report(self) -> dict:
        return {
            "fps": round(self.fps, 1),
            "detection_hz": round(self.detection_rate, 1),
            "ticks": self._ticks,
            "detections": self._detections,
            "ticks_per_detection": round(self._ticks_per_detection.mean, 2),
            "hand_presence": round(self.hand_presence, 2),
            "missed_frames": self._missed_frames,
            "stage_ms": {name: round(w.mean, 2) for name, w in self._stages.items()},
        }

    def print_report(self):
        report = self.get_report()
        logger.info("-" * 48)
        logger.info("Game loop: %.1f fps, detection %.1f Hz (%.2f ticks each)",
                    report["fps"], report["detection_hz"], report["ticks_per_detection"])
        logger.info("Ticks %d | detections %d | missed camera frames %d | hand in view %.0f%%",
                    report["ticks"], report["detections"], report["missed_frames"],
                    report["hand_presence"] * 100)
        for name, cost in report["stage_ms"].items():
            logger.info("  %-11s %7.2f ms", name, cost)
        logger.info("-" * 48)
