"""Client and terminal dashboard for the Chromium Issues Auto Analysis backend."""

__version__ = "0.1.0"
