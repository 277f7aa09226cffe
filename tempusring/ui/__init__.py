"""UI package."""

from .controller import TimerController
from .tray import TrayController
from .settings_dialog import SettingsDialog

__all__ = [
    "TimerController",
    "TrayController",
    "SettingsDialog",
]
