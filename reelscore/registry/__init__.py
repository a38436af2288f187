"""
Entity Registry Module.

Single source of truth for movies, shows and people and their rating fields.
"""
