"""
Knotes Desk
===========

A desktop and command-line client for a knotes server, which stores
plain-text notes under 26-character identifiers.

This package follows a clean architecture with:
- core/ - Note model, identity tokens, HTTP store client and scheduling
- config/ - Configuration management
- cli/ - Command-line interface

The Tkinter window lives in view.py and the sync logic in controller.py.
"""

__version__ = "1.0.0"
