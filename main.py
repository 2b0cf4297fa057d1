#!/usr/bin/env python3
"""
Gesture Spellcaster - run from a source checkout.

Usage:
    python main.py                    # default camera and config
    python main.py --camera 1         # another camera device
    python main.py --list-cameras     # probe devices and exit
"""

import sys

from spellcaster.app import main

if __name__ == "__main__":
    sys.exit(main())
