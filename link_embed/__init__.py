"""Turn pasted URLs into rich embed blocks inside Markdown documents."""

__version__ = "0.3.0"
