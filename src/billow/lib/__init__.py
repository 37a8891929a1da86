"""
Local library modules shared across Billow.

Modules:
    logs: Logging utilities
    objects: Stable hashing of parameter tuples
"""

from billow.lib import logs, objects

__all__ = ["logs", "objects"]
