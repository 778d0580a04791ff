"""Extract versioned design-system snapshots from component sources and diff them."""

__version__ = "0.1.0"
