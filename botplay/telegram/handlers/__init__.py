"""
Update Handlers.

Adding a Handler:
1. Subclass UpdateHandler in a new file in this directory
2. Add on_<update_type> methods taking the payload as their only argument
3. Pass the class to create_app(handler_cls=...)
"""

from botplay.telegram.handlers.example import ExampleUpdateHandler

__all__ = [
    "ExampleUpdateHandler",
]
