"""CommonJS script bundler for sandboxed and standalone automation hosts."""

__all__ = ["__version__"]

__version__ = "0.1.0"
