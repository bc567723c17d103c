"""Atempo - scaffold framework projects with Docker-based local environments."""

__version__ = "0.1.0"
