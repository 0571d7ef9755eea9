"""curl2code — translate curl invocations into HTTP client source code."""

__version__ = "0.1.0"
