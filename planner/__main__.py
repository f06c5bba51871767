"""
Entry point for running planner as a module.

Usage:
    python -m planner import timetable.json
    python -m planner week
    python -m planner occurrences 12G2
"""

from planner.cli import main

if __name__ == "__main__":
    main()
