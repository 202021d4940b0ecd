"""cin: a minimal continuous-integration coordinator."""

__version__ = "0.1.0"

__all__ = ["__version__"]
