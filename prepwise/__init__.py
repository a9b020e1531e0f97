"""PrepWise: voice-driven mock interviews with AI feedback."""

__version__ = "0.1.0"
