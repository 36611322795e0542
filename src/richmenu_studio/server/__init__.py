"""HTTP relay service forwarding rich menu calls to the LINE Messaging API."""

from .proxy import create_app

__all__ = ["create_app"]
