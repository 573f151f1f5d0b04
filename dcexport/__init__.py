"""Export of Digital Collections captures as JSON Lines, enriched with MODS metadata."""

__version__ = "0.1.0"
