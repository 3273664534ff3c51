"""mirro - pick Arch Linux mirrors from an interactive terminal dashboard."""

__version__ = "0.1.0"
