"""Utility helpers package for IDs, JSON I/O and text.

Modules here provide time-sortable ID generation, atomic JSON file I/O,
dictation/instruction text handling and Russian date formatting.
"""
