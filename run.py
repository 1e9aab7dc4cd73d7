"""
Entry Point Script (Bootstrap)
==============================
Development runner: starts the lab without installing the package.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner.
2. It puts 'src' on 'sys.path' so 'from stokeslab...' resolves from a
   plain checkout.

Usage:
    $ python run.py
    $ python run.py simulate --fluid glycerin
"""
import sys
import os

current_dir: str = os.path.dirname(os.path.abspath(__file__))
src_path: str = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

appid = 'StokesLab.FallingBall'  # Arbitrary string, groups the taskbar icon on Windows
try:
    import ctypes
    ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID(appid)
except (AttributeError, ImportError):
    # Not on Windows or ctypes not available
    pass

from stokeslab.main import main

if __name__ == "__main__":
    raise SystemExit(main())
