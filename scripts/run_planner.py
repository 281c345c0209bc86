#!/usr/bin/env python3
"""
Weekly plan operator CLI (file-backed data/ by default, --remote for hosted)

Usage:
  python scripts/run_planner.py --today 2026-10-15 window
  python scripts/run_planner.py --actor mgr-1 --role manager approve rep-1
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from repplan.cli import main

if __name__ == "__main__":
    sys.exit(main())
