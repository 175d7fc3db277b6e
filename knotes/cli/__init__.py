"""
Command-Line Interface
=======================

This module contains the command-line interface for the knotes client.
It provides terminal commands for creating, reading, updating and
live-syncing notes on a knotes server.
"""

from knotes.cli.main import main
