"""Portfolio import, validation and metrics."""

__version__ = "0.2.0"
