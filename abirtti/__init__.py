"""Itanium C++ ABI run-time type information modelled in Python: handler matching and dynamic_cast."""

__version__ = "0.1.0"

__all__ = ["dyncast", "errors", "handlers", "layout", "memory", "search", "typeinfo"]