"""Lead intake service: suppression-checked lead capture and buyer routing."""

__version__ = "1.0.0"
