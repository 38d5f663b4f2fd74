"""One-to-one post relation field with back-link maintenance."""

__version__ = "1.0.0"
