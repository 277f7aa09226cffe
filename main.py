#!/usr/bin/env python3
"""Tempus Ring entry point.

Run with:
    python main.py
    python -m tempusring
"""

from tempusring.__main__ import main


if __name__ == "__main__":
    main()
