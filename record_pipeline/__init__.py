"""Record Pipeline: normalize, deduplicate and submit tabular payment records."""

__version__ = "1.0.0"

__all__ = ["__version__"]
