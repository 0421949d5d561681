"""
IO module for the relay's inbound surface.
"""

from voice_relay.io.http_interface import create_app, spool_upload

__all__ = [
    "create_app",
    "spool_upload",
]
