"""sheet-profiler: local cleaning and profiling engine for tabular data."""

__version__ = "0.1.0"
