"""deskchat: polled direct and project chat with an incremental sync engine."""

__version__ = "0.1.0"
