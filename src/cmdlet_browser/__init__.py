"""Browse PowerShell commands and their normalized help."""

__version__ = "0.1.0"
