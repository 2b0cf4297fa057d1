"""
OpenCV overlay for the game: projectiles, particles, target, charge ring
and HUD, drawn from the read-only GameSession.build_state() snapshot.
"""

import logging

import cv2
import numpy as np

from spellcaster.core.events import EventBus, Events
from spellcaster.recognition.landmarks import HAND_CONNECTIONS, LandmarkIndex

logger = logging.getLogger(__name__)

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_ALPHA_LEVELS = (0.25, 0.5, 0.75, 1.0)


def hex_to_bgr(color: str, default=(255, 255, 255)) -> tuple:
    """'#rrggbb' -> (b, g, r). Unparseable colors map to the default."""
    value = str(color).lstrip("#")
    if len(value) != 6:
        return default
    try:
        r, g, b = int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    except ValueError:
        return default
    return (b, g, r)


class Renderer:
    """Draws the game state onto a BGR frame."""

    def __init__(self, config: dict, event_bus: EventBus = None):
        self._show_skeleton = config.get("show_skeleton", True)
        self._show_hud = config.get("show_hud", True)
        self._show_charge_ring = config.get("show_charge_ring", True)
        self._flash_frames = int(config.get("hit_flash_frames", 6))
        self._hud_opacity = config.get("hud_opacity", 0.6)

        self._color_text = (255, 255, 255)
        self._color_mana = (255, 160, 40)
        self._color_xp = (0, 215, 255)
        self._color_target = (60, 60, 200)
        self._color_health = (0, 200, 0)
        self._color_health_bg = (40, 40, 40)

        self._flash_remaining = 0
        if event_bus is not None:
            event_bus.subscribe(Events.SPELL_HIT, self.flash_hit)

    def flash_hit(self, **_):
        self._flash_remaining = self._flash_frames

    def render(self, frame: np.ndarray, state: dict) -> np.ndarray:
        """Render the full overlay.

        Args:
            frame: BGR frame to draw on (modified in place)
            state: GameSession.build_state() snapshot, optionally with "fps"

        Returns:
            the same frame
        """
        if self._show_skeleton and state.get("hand_landmarks") is not None:
            self._draw_skeleton(frame, state["hand_landmarks"])

        self._draw_target(frame, state.get("target"))

        for projectile in state.get("projectiles", []):
            self._draw_particles(frame, projectile.get("particles", []))
        for projectile in state.get("projectiles", []):
            self._draw_projectile(frame, projectile)

        if self._show_charge_ring and state.get("charging"):
            self._draw_charge_ring(frame, state)

        if self._show_hud:
            self._draw_hud(frame, state)

        if not state.get("hand_detected", False):
            self._draw_no_hand_warning(frame)

        if self._flash_remaining > 0:
            self._flash_remaining -= 1
        return frame

    def _draw_skeleton(self, frame, landmarks):
        pts = [(int(p[0]), int(p[1])) for p in landmarks]
        for a, b in HAND_CONNECTIONS:
            if a < len(pts) and b < len(pts):
                cv2.line(frame, pts[a], pts[b], (200, 200, 200), 1, cv2.LINE_AA)
        for pt in pts:
            cv2.circle(frame, pt, 3, (0, 255, 0), -1, cv2.LINE_AA)

    def _draw_target(self, frame, target):
        if not target or target.get("defeated"):
            return
        center = (int(target["x"]), int(target["y"]))
        color = (255, 255, 255) if self._flash_remaining > 0 else self._color_target
        cv2.circle(frame, center, 40, color, -1, cv2.LINE_AA)
        cv2.circle(frame, center, 40, (20, 20, 20), 2, cv2.LINE_AA)

        # Health bar above the target
        bar_w, bar_h = 100, 10
        x0 = center[0] - bar_w // 2
        y0 = center[1] - 60
        fraction = 0.0
        if target.get("max_health"):
            fraction = max(0.0, min(1.0, target["health"] / target["max_health"]))
        cv2.rectangle(frame, (x0, y0), (x0 + bar_w, y0 + bar_h), self._color_health_bg, -1)
        cv2.rectangle(frame, (x0, y0), (x0 + int(bar_w * fraction), y0 + bar_h),
                      self._color_health, -1)
        cv2.rectangle(frame, (x0, y0), (x0 + bar_w, y0 + bar_h), (200, 200, 200), 1)

    def _draw_particles(self, frame, particles):
        if not particles:
            return
        # particles blend by remaining life, quantized to a few overlay passes
        buckets = {level: [] for level in _ALPHA_LEVELS}
        for x, y, size, life, color in particles:
            level = next(lv for lv in _ALPHA_LEVELS if life <= lv or lv == 1.0)
            buckets[level].append((int(x), int(y), max(1, int(size)), hex_to_bgr(color)))

        for alpha, items in buckets.items():
            if not items:
                continue
            overlay = frame.copy()
            for x, y, size, bgr in items:
                cv2.circle(overlay, (x, y), size, bgr, -1)
            cv2.addWeighted(overlay, alpha, frame, 1 - alpha, 0, frame)

    def _draw_projectile(self, frame, projectile):
        center = (int(projectile["x"]), int(projectile["y"]))
        bgr = hex_to_bgr(projectile.get("color"))
        overlay = frame.copy()
        cv2.circle(overlay, center, 22, bgr, -1, cv2.LINE_AA)
        cv2.addWeighted(overlay, 0.35, frame, 0.65, 0, frame)
        cv2.circle(frame, center, 12, bgr, -1, cv2.LINE_AA)
        cv2.circle(frame, center, 5, (255, 255, 255), -1, cv2.LINE_AA)

    def _draw_charge_ring(self, frame, state):
        landmarks = state.get("hand_landmarks")
        spell = state.get("charge_spell") or {}
        if landmarks is None or len(landmarks) <= LandmarkIndex.INDEX_TIP:
            return
        tip = landmarks[LandmarkIndex.INDEX_TIP]
        center = (int(tip[0]), int(tip[1]))
        progress = max(0.0, min(1.0, state.get("charge_progress", 0.0)))
        bgr = hex_to_bgr(spell.get("color"))

        cv2.circle(frame, center, 30, (80, 80, 80), 2, cv2.LINE_AA)
        cv2.ellipse(frame, center, (30, 30), -90, 0, int(360 * progress), bgr, 4, cv2.LINE_AA)
        label = spell.get("icon") or spell.get("name", "")
        if label:
            cv2.putText(frame, label, (center[0] - 8, center[1] + 6),
                        _FONT, 0.6, bgr, 2, cv2.LINE_AA)

    def _draw_hud(self, frame, state):
        h, w = frame.shape[:2]
        hud_h = 90
        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, hud_h), (20, 20, 20), -1)
        cv2.addWeighted(overlay, self._hud_opacity, frame, 1 - self._hud_opacity, 0, frame)

        self._draw_bar(frame, (15, 15), 200, state.get("mana", 0), state.get("max_mana", 1),
                       self._color_mana, f"Mana {state.get('mana', 0)}/{state.get('max_mana', 0)}")
        self._draw_bar(frame, (15, 50), 200, state.get("experience", 0),
                       state.get("experience_per_level", 1), self._color_xp,
                       f"XP {state.get('experience', 0)}/{state.get('experience_per_level', 0)}")

        cv2.putText(frame, f"Level {state.get('level', 1)}", (240, 35),
                    _FONT, 0.8, self._color_text, 2)
        cv2.putText(frame, f"Hits {state.get('hits', 0)}", (240, 70),
                    _FONT, 0.6, self._color_text, 1)

        combo = state.get("combo", 0)
        if combo > 1:
            cv2.putText(frame, f"Combo x{combo}", (w // 2 - 70, 45),
                        _FONT, 1.0, self._color_xp, 2)

        cv2.putText(frame, f"Gesture: {state.get('gesture_name', 'none')}", (w - 260, 35),
                    _FONT, 0.7, self._color_text, 2)
        if "fps" in state:
            cv2.putText(frame, f"FPS: {state['fps']:.1f}", (w - 260, 70),
                        _FONT, 0.6, self._color_text, 1)

    def _draw_bar(self, frame, origin, width, value, maximum, color, label):
        x, y = origin
        bar_h = 20
        fraction = max(0.0, min(1.0, value / maximum)) if maximum else 0.0
        cv2.rectangle(frame, (x, y), (x + width, y + bar_h), (60, 60, 60), -1)
        cv2.rectangle(frame, (x, y), (x + int(width * fraction), y + bar_h), color, -1)
        cv2.rectangle(frame, (x, y), (x + width, y + bar_h), (200, 200, 200), 1)
        cv2.putText(frame, label, (x + 5, y + 15), _FONT, 0.45, self._color_text, 1)

    def _draw_no_hand_warning(self, frame):
        h, w = frame.shape[:2]
        text = "Show your hand to cast"
        size = cv2.getTextSize(text, _FONT, 0.8, 2)[0]
        cv2.putText(frame, text, ((w - size[0]) // 2, h - 30),
                    _FONT, 0.8, (0, 200, 255), 2)
