"""Command-line client for the NovelAI image generation API."""

__version__ = "0.1.0"
