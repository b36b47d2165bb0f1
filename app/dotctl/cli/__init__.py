"""CLI layer for dotctl."""
