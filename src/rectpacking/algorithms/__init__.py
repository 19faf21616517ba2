"""Bins, placement heuristics and solution-level packing strategies."""
