"""
roster_core - session-gated, cache-first sync of the mahasiswa roster.
"""

__version__ = "0.1.0"
