"""Release lanes for Flutter apps."""

__version__ = "0.3.0"
