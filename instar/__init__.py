"""instar — a minimal local package manager for .tar.gz archives."""

__version__ = "0.1.0"
