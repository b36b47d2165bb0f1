"""Bundled data files for dotctl."""
