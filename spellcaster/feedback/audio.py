"""
Per-spell cast sounds via pygame.mixer.

Audio is optional: mixer or file failures are logged and the game keeps
running silently.
"""

import os
import logging
from typing import Dict, Optional

import pygame

from spellcaster.core.events import EventBus, Events

logger = logging.getLogger(__name__)


class SpellAudio:
    """Plays the cast sound of each spell on the spell_cast event."""

    def __init__(self, config: dict, base_dir: str = ".", event_bus: EventBus = None):
        self.enabled = bool(config.get("enabled", True))
        self._volume = float(config.get("volume", 0.7))
        sounds_dir = config.get("sounds_dir", "assets/sounds")
        if not os.path.isabs(sounds_dir):
            sounds_dir = os.path.join(base_dir, sounds_dir)
        self._sounds_dir = sounds_dir
        self._files: Dict[str, str] = dict(config.get("sounds", {}))
        self._sounds: Dict[str, Optional[pygame.mixer.Sound]] = {}

        if self.enabled:
            self._init_audio()
        if event_bus is not None:
            event_bus.subscribe(Events.SPELL_CAST, self.on_spell_cast)

    def _init_audio(self):
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
        except pygame.error as e:
            logger.warning("Audio initialization failed, running silent: %s", e)
            self.enabled = False
            return

        for spell_id, filename in self._files.items():
            self._sounds[spell_id] = self._load(filename)
        loaded = sum(1 for s in self._sounds.values() if s is not None)
        logger.info("Audio ready: %d/%d spell sounds loaded", loaded, len(self._files))

    def _load(self, filename: str) -> Optional[pygame.mixer.Sound]:
        path = os.path.join(self._sounds_dir, filename)
        try:
            sound = pygame.mixer.Sound(path)
        except (pygame.error, OSError) as e:
            logger.warning("Could not load sound %s: %s", path, e)
            return None
        sound.set_volume(self._volume)
        return sound

    def play(self, spell_id: str) -> bool:
        """Play a spell's sound. Safe to call with audio disabled.

        Returns:
            True if playback started
        """
        if not self.enabled:
            return False
        sound = self._sounds.get(spell_id)
        if sound is None:
            return False
        try:
            sound.play()
        except pygame.error as e:
            logger.warning("Could not play sound for %s: %s", spell_id, e)
            return False
        return True

    def on_spell_cast(self, spell, **_):
        self.play(spell.id)

    def close(self):
        if self.enabled and pygame.mixer.get_init():
            pygame.mixer.quit()
        self._sounds.clear()
        self.enabled = False
