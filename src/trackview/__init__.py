"""Multi-locus genome browser core with variant tracks, served over MCP."""

__version__ = "0.1.0"
