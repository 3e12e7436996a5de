"""Shelf Label Designer - Entry Point."""

import sys
import os

# Ensure the app directory is on the import path
app_dir = os.path.dirname(os.path.abspath(__file__))
if app_dir not in sys.path:
    sys.path.insert(0, app_dir)

from web.app import main


if __name__ == "__main__":
    main()
