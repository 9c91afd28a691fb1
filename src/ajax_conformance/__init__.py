"""Browser-driven conformance harness for asynchronous admin actions."""

__version__ = "1.0.0"
