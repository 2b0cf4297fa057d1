"""
Gesture Spellcaster
===================

Cast spells at a target by shaping your hand in front of a webcam.

Modules:
    - core: shared types, event bus, virtual-clock scheduler, game session
    - recognition: landmark helpers and the rule-based gesture classifier
    - casting: spell catalog and the charge/release state machine
    - combat: projectiles, particles, target and the frame simulator
    - resources: mana, experience and level bookkeeping
    - detection: MediaPipe hand detection
    - capture: OpenCV camera capture
    - feedback: spell sounds
    - visualization: OpenCV overlay
    - utils: config, logging, performance monitoring
"""

__version__ = "1.0.0"
