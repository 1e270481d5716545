"""CVPilot client core: session handling and the popup workflow controller."""

__version__ = "0.1.0"
