"""LLM Radar - probe remote models through the opencode CLI and classify them."""

__version__ = "0.1.0"

APP_NAME = "LLM Radar"
