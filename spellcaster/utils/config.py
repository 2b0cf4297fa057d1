"""
Centralized configuration manager.
Loads YAML configs over built-in defaults and provides typed access.

    - Schema validation for critical config fields (warnings only)
    - Dot-path access: config.get("combat.hit_radius")
    - Plain instances (no singleton), so tests build their own
"""

import os
import copy
import logging

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")


class ConfigError(ValueError):
    """Raised for configuration that cannot be used at all (e.g. a broken spell catalog)."""


# Values the game runs with when no config file is present
DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 1280,
        "height": 720,
        "fps": 30,
        "backend": "auto",
        "flip_horizontal": False,
        "warmup_frames": 5,
    },
    "mediapipe": {
        "model_complexity": 0,
        "max_num_hands": 1,
        "min_detection_confidence": 0.8,
        "min_tracking_confidence": 0.5,
    },
    "arena": {
        "width": 1280,
        "height": 720,
        "mirror": True,
    },
    "combat": {
        "projectile_speed": 15.0,
        "hit_radius": 30.0,
        "particles_per_frame": 3,
        "particle_decay": 0.02,
        "particle_jitter": 1.0,
        "particle_size_min": 2.0,
        "particle_size_max": 6.0,
        "combo_window_ms": 5000,
        "combo_damage_bonus": 0.1,
        "target_health": 500.0,
        "target_x_ratio": 0.75,
        "target_y_ratio": 0.5,
        "respawn_delay_ms": 1500,
        "hit_experience": 5,
        "defeat_experience": 50,
    },
    "resources": {
        "initial_mana": 100,
        "max_mana": 100,
        "mana_regen_amount": 2,
        "mana_regen_interval_ms": 1000,
        "initial_level": 1,
        "experience_per_level": 100,
    },
    "audio": {
        "enabled": True,
        "volume": 0.7,
        "sounds_dir": "assets/sounds",
        "sounds": {
            "fireball": "fire.mp3",
            "waterwave": "water.mp3",
            "lightning": "elec.mp3",
        },
    },
    "visualization": {
        "enabled": True,
        "window_name": "Gesture Spellcaster",
        "show_skeleton": True,
        "show_hud": True,
        "show_charge_ring": True,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "arena": {
        "width": int,
        "height": int,
        "mirror": bool,
    },
    "combat": {
        "projectile_speed": float,
        "hit_radius": float,
        "particles_per_frame": int,
        "particle_decay": float,
        "combo_window_ms": int,
        "target_health": float,
        "respawn_delay_ms": int,
        "hit_experience": int,
        "defeat_experience": int,
    },
    "resources": {
        "initial_mana": int,
        "max_mana": int,
        "mana_regen_amount": int,
        "mana_regen_interval_ms": int,
        "experience_per_level": int,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Game configuration: defaults, overridden by config.yaml and spells.yaml."""

    def __init__(self, data: dict = None):
        self._data = _deep_merge(copy.deepcopy(DEFAULTS), data or {})

    @classmethod
    def load(cls, config_path=None, spells_path=None) -> "Config":
        """Load configuration from YAML files."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")
        spells_path = spells_path or os.path.join(_CONFIG_DIR, "spells.yaml")

        data = {}
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)

        try:
            with open(spells_path, "r") as f:
                spell_data = yaml.safe_load(f) or {}
            data["spells"] = spell_data.get("spells", [])
            logger.info("Loaded %d spells from %s", len(data["spells"]), spells_path)
        except FileNotFoundError:
            logger.warning("Spells file not found: %s, using built-in catalog", spells_path)

        config = cls(data)
        config.validate()
        return config

    def validate(self) -> list:
        """Check critical config fields against the schema.

        Returns:
            list of warning strings (also logged)
        """
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name not in section:
                    continue
                value = section[field_name]
                # Allow int where float is expected
                if expected_type is float and isinstance(value, (int, float)):
                    continue
                if isinstance(value, expected_type):
                    continue
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Set nested config value using dot notation (CLI overrides)."""
        keys = key_path.split(".")
        node = self._data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def camera(self) -> dict:
        return self._data.get("camera", {})

    @property
    def mediapipe(self) -> dict:
        return self._data.get("mediapipe", {})

    @property
    def arena(self) -> dict:
        return self._data.get("arena", {})

    @property
    def combat(self) -> dict:
        return self._data.get("combat", {})

    @property
    def resources(self) -> dict:
        return self._data.get("resources", {})

    @property
    def audio(self) -> dict:
        return self._data.get("audio", {})

    @property
    def visualization(self) -> dict:
        return self._data.get("visualization", {})

    @property
    def spells(self) -> list:
        return self._data.get("spells", [])

    @property
    def base_dir(self) -> str:
        return _BASE_DIR
