#!/usr/bin/env python3
"""Pisi Store - Module entry point."""
import sys

from pkgstore.gui.window_qt import main

if __name__ == "__main__":
    sys.exit(main())
