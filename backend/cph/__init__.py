"""Catholic Product Hunt backend."""

__version__ = "0.4.0"
