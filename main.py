#!/usr/bin/env python3
"""
Phantom Registration

Registers a calibration phantom to a tracker reference frame from
defined and recorded landmark positions.
"""

import sys
from pathlib import Path

# Add current directory to Python path
sys.path.insert(0, str(Path(__file__).parent))

from core.application import main

if __name__ == "__main__":
    sys.exit(main())
