"""
Pisi Store GUI

PyQt6 desktop shell around the store services.
"""

from .window_qt import StoreWindow, main

__all__ = ["main", "StoreWindow"]
