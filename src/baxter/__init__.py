"""Baxter: voice-enabled chat front-end for streamed LLM replies."""

__version__ = "0.1.0"
