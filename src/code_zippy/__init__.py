"""Snapshot a source tree into an LLM-friendly staging folder and zip archive."""

__version__ = "0.1.0"
