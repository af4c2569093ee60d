#!/usr/bin/env python3
"""TicTask — entry point.

Run with:
    python main.py
    python -m tictask
"""

from tictask.__main__ import main


if __name__ == "__main__":
    main()
