#!/usr/bin/env python3
"""Module entry point for the Pisi Store GUI."""

import sys
from pkgstore.gui.window_qt import main

if __name__ == "__main__":
    sys.exit(main())
