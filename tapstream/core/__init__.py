"""Core capture machinery."""
