"""Project-wide find/replace engine."""
