"""Dr's Lab - dual-mode AI chat and Studio workspace backend."""

__version__ = "0.1.0"
