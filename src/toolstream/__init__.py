"""toolstream - tool invocation over an SSE push channel plus HTTP calls."""

__version__ = "0.1.0"
