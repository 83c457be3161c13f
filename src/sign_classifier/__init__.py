"""Feed-forward traffic sign classification from photographs."""

__version__ = "0.1.0"
