"""
Pocketbook - Source Package

A personal and business expense tracker for a single user: record
expenses, watch a monthly budget per scope, explore charts and history,
and keep everything in local JSON files with portable backups.

DESIGN PRINCIPLES:
1. Pure state transitions, persistence as a separate commit step
2. Nothing read from disk or a backup is trusted before decoding
3. Optional helpers (receipt images, smart parse) never block a save
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocketbook Team"
