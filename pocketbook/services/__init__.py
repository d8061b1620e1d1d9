"""
Services Package

External-facing collaborators: local storage, backup files and
receipt image processing.
"""
