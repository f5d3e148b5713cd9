"""Small helpers shared across gitok."""

from gitok.utils.io import atomic_write_text

__all__ = ["atomic_write_text"]
