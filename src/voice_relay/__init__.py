"""
Voice Relay

Relays an embedded client's spoken or typed question through speech-to-text,
a chat model and text-to-speech, remembering recent turns and caching replies.
"""

__version__ = "0.1.0"
