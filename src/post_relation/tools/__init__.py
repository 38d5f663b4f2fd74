"""Post Relation Tools

This package contains the tool implementations exposed by the server.
"""

__all__ = [
    "relation_tools",
]
