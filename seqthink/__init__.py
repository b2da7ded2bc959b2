"""Sequential thinking orchestration across model backends."""

__version__ = "1.0.0"
