#!/usr/bin/env python3
"""
Verdict CLI Entry Point

Run with: python -m verdict <command> [args]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
