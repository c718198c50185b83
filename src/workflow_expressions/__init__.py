"""Expression evaluation engine for workflow node configuration."""

__version__ = "0.1.0"
