"""Input parsers for structures and per-transcript annotations."""
