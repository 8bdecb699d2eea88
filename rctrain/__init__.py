"""Release-train automation for git repositories."""

__version__ = "0.4.0"
