"""Label review service: compares label images against filed application data."""

__version__ = "1.0.0"
