"""Handler modules for konnektor operator."""

# Import handlers so kopf registers them
from . import connect_handler

__all__ = ["connect_handler"]
