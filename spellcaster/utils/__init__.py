"""Configuration, logging and performance utilities."""
from .config import Config, ConfigError
from .logger import setup_logging, CombatLogger, log_timing
from .performance_monitor import PerformanceMonitor

__all__ = [
    "Config",
    "ConfigError",
    "setup_logging",
    "CombatLogger",
    "log_timing",
    "PerformanceMonitor",
]
