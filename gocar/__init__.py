"""gocar: a cargo-like front end for Go projects."""

__version__ = "0.2.0"

__all__ = ["__version__"]
