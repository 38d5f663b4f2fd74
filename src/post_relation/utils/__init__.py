"""Post Relation Utilities

This package contains utility modules for the post relation field.
"""

__all__ = [
    "errors",
    "locking",
    "rate_limit",
]
