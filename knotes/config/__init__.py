"""
Configuration Management
==========================

This module contains configuration management components for the knotes
client. It provides a single, consistent configuration system for both
CLI and GUI interfaces.
"""

from knotes.config.manager import ConfigManager
