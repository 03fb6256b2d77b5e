"""
Music League Standings Engine

Loads community music league result archives (ZIP files of CSV tables),
validates them, and turns them into per-round and league-wide standings.
"""

__version__ = "0.1.0"
