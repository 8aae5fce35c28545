"""Browser-driven UAT harness for the online-banking web application."""

__version__ = "1.0.0"
