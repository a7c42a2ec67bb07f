"""Hot Reload Sentinel - evidence-based hot reload diagnostics."""

__version__ = "0.1.1"
