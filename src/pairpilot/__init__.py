"""PairPilot: conversation, tool-call and workspace-context core for an IDE pair programmer."""

__version__ = "0.1.0"

__all__ = ["__version__"]
