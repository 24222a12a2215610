"""Shared infrastructure: logging, configuration files and paths."""
