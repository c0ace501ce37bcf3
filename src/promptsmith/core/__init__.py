"""Heuristic prompt optimization engine."""
