"""
Import a tree of markdown notes into a Tududi SQLite database.
"""

__version__ = "0.1.0"
