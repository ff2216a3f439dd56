"""
Horizon watcher package.

This package contains:
- Horizon scheduling (watched dates, request gaps, jittered cycle delay)
- Slot normalization and fingerprinting
- Per-date change detection and release events
- The append-only observation log and its offline replay
- The poll service that drives the loop
"""

__version__ = "1.0.0"
