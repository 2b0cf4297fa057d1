"""
Threaded camera capture; the game loop always reads the latest frame.
"""

import time
import threading
import logging

import cv2

logger = logging.getLogger(__name__)

_BACKENDS = {
    "v4l2": cv2.CAP_V4L2,
    "dshow": cv2.CAP_DSHOW,
    "auto": cv2.CAP_ANY,
}


def list_cameras(max_index: int = 5, backend: str = "auto") -> list:
    """Probe device indices and return the ones that deliver a frame.

    Returns:
        list of dicts: {"device_id", "width", "height"}
    """
    found = []
    api = _BACKENDS.get(backend, cv2.CAP_ANY)
    for device_id in range(max_index):
        cap = cv2.VideoCapture(device_id, api)
        try:
            if not cap.isOpened():
                continue
            ret, frame = cap.read()
            if not ret or frame is None:
                continue
            h, w = frame.shape[:2]
            found.append({"device_id": device_id, "width": w, "height": h})
            logger.debug("Camera %d available (%dx%d)", device_id, w, h)
        finally:
            cap.release()
    return found


class CameraManager:
    """Camera capture with a background thread holding the newest frame."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 1280)
        self._height = config.get("height", 720)
        self._fps = config.get("fps", 30)
        self._backend = config.get("backend", "auto")
        self._flip_h = config.get("flip_horizontal", False)
        self._warmup_frames = config.get("warmup_frames", 5)

        self._cap = None
        self._frame = None
        self._frame_id = 0
        self._lock = threading.Lock()
        self._running = False
        self._thread = None

    def open(self) -> bool:
        """Open the camera device and discard warmup frames."""
        backend = _BACKENDS.get(self._backend, cv2.CAP_ANY)

        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            logger.error("Failed to open camera %d with backend %s", self._device_id, self._backend)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or self._width
        self._height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self._height
        logger.info("Camera %d opened: %dx%d @ %.0f FPS",
                    self._device_id, self._width, self._height,
                    self._cap.get(cv2.CAP_PROP_FPS))

        for _ in range(self._warmup_frames):
            self._cap.read()
        return True

    def start_async(self):
        """Start threaded frame capture."""
        if self._running or self._cap is None:
            return
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        logger.info("Async capture started")

    def _capture_loop(self):
        while self._running:
            ret, frame = self._cap.read()
            if ret and frame is not None:
                if self._flip_h:
                    frame = cv2.flip(frame, 1)
                with self._lock:
                    self._frame = frame
                    self._frame_id += 1
            else:
                time.sleep(0.001)

    def read(self):
        """Get the latest frame (non-blocking).

        Returns:
            tuple: (frame_id, numpy array) or (None, None) if no frame
        """
        with self._lock:
            if self._frame is not None:
                return self._frame_id, self._frame.copy()
            return None, None

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self):
        """Stop async capture and release camera."""
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        if self._cap:
            self._cap.release()
            self._cap = None
        with self._lock:
            self._frame = None
        logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
