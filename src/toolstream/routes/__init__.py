"""HTTP routes."""

from .health import health_routes
from .messages import post_message
from .options import options_routes
from .stream import stream_endpoint

__all__ = ["health_routes", "options_routes", "post_message", "stream_endpoint"]
