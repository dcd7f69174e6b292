"""repo-evolution - rebuild and lay out a repository's file tree over time."""

__version__ = "0.1.0"
