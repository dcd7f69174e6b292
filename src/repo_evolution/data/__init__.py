"""Bundled example timelines."""

from .demo import demo_timeline

__all__ = ["demo_timeline"]
