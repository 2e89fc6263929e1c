"""Block Blast: an 8x8 block-placement puzzle engine with a heuristic player."""

__version__ = "0.1.0"
