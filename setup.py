"""Packaging for Tempus Ring.

Install for development:
    pip install -e ".[test]"

Build a macOS .app bundle:
    pip install py2app
    python setup.py py2app
"""

import sys

from setuptools import setup

APP = ["main.py"]
DATA_FILES = []
OPTIONS = {
    "argv_emulation": False,
    "iconfile": None,
    "plist": {
        "CFBundleName": "Tempus Ring",
        "CFBundleDisplayName": "Tempus Ring",
        "CFBundleIdentifier": "com.tempusring.app",
        "CFBundleVersion": "0.1.0",
        "CFBundleShortVersionString": "0.1.0",
        "NSHighResolutionCapable": True,
        "LSMinimumSystemVersion": "13.0",
    },
}

setup(
    app=APP,
    data_files=DATA_FILES,
    options={"py2app": OPTIONS},
    setup_requires=["py2app"] if sys.platform == "darwin" else [],
    name="TempusRing",
    version="0.1.0",
    python_requires=">=3.10",
    packages=[
        "tempusring",
        "tempusring.timer",
        "tempusring.storage",
        "tempusring.ui",
    ],
    install_requires=["PyQt6>=6.4"],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"gui_scripts": ["tempusring = tempusring.__main__:main"]},
)
