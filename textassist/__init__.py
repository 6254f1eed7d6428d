"""TextAssist - persisted settings for an LLM-backed text-processing tool."""

__version__ = "0.3.0"

__all__ = ["__version__"]
