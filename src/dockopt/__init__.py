"""dockopt — static Dockerfile optimization advisor."""

__version__ = "0.1.0"
