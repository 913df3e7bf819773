"""covdelta: compare monorepo coverage summaries and gate on regressions."""

__version__ = "0.1.0"
