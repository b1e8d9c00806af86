"""Task analysis, mode routing and context-aware orchestration for coding agents."""

__version__ = "0.1.0"
