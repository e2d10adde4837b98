"""Map a project directory into a single markdown, JSON or HTML document."""

__version__ = "0.1.0"
