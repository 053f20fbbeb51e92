"""Evaluator helper modules for the slang runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "expr",
    "fn",
    "loops",
]
