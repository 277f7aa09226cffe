"""Tempus Ring: a desktop Pomodoro timer."""

__version__ = "0.1.0"
