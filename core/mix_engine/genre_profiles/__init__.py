"""Bundled YAML threshold tables, read through importlib.resources."""
