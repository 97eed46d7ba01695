"""Edit distance alignment, minimizer sketching and mapping filters for sequences."""

__version__ = "0.1.0"

__all__ = ["common", "edlib", "filter", "myers", "sketch", "traceback"]