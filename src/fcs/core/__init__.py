"""Core utilities shared across the conversion service."""
