"""
CLI runner module.

Provides commands:
- score: Score a recognition payload
- feedback: Record accept/correct feedback for a field
- stats: Show per-field accuracy
- reset: Clear feedback history
- init-config: Write a default config file
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
