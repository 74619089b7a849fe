"""Generate a README for a GitHub repository with Gemini."""

__version__ = "1.0.0"
