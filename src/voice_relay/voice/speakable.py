"""Utilities for turning model output into text that reads well aloud.

Chat models like to answer with markdown even when told not to. The
synthesizer would pronounce the asterisks, hashes and URLs, so they are
stripped here before any text reaches the TTS engine.
"""

from __future__ import annotations

import re
from typing import Any

_TAG_THINK_RE = re.compile(r"<(think|reasoning)>.*?</\1>", re.IGNORECASE | re.DOTALL)
_CODE_BLOCK_RE = re.compile(r"```.*?(```|$)", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`]*)`")
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_URL_RE = re.compile(r"https?://\S+")
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+", re.MULTILINE)
_EMPHASIS_RE = re.compile(r"(\*\*|__|\*|~~)(?=\S)(.+?)(?<=\S)\1")
_TAG_RE = re.compile(r"</?\w+?>")
_WS_RE = re.compile(r"\s+")


def _split_sentences(text: str) -> list[str]:
    t = (text or "").strip()
    if not t:
        return []

    parts = re.split(r"(?<=[.!?…])\s+", t)
    return [p.strip() for p in parts if p and p.strip()]


def _strip_markup(text: str) -> str:
    s = _TAG_THINK_RE.sub(" ", text)
    s = _CODE_BLOCK_RE.sub(" ", s)
    s = _INLINE_CODE_RE.sub(r"\1", s)
    s = _LINK_RE.sub(r"\1", s)
    s = _URL_RE.sub(" ", s)
    s = _HEADING_RE.sub("", s)
    # Keep list items as separate sentences once newlines collapse.
    s = _BULLET_RE.sub("", s)
    s = re.sub(r"([^.!?…:;,\s])\s*\n+", r"\1. ", s)
    s = _EMPHASIS_RE.sub(r"\2", s)
    s = _TAG_RE.sub("", s)
    return _WS_RE.sub(" ", s).strip()


def to_speakable(text: str, *, max_chars: int = 1000) -> tuple[str | None, dict[str, Any]]:
    """Return (speakable_text_or_None, debug_info).

    Rules:
    - <think>/<reasoning> blocks and fenced code are dropped.
    - Markdown emphasis, headings, bullets and links are reduced to plain text.
    - Bare URLs are dropped.
    - Text longer than max_chars is cut at the last full sentence that fits,
      or hard-truncated with an ellipsis if no sentence fits.
    """

    debug: dict[str, Any] = {
        "input_chars": len(text or ""),
        "stripped_markup": False,
        "truncated": False,
        "output_chars": 0,
    }

    raw = (text or "").strip()
    if not raw:
        return None, debug

    speak = _strip_markup(raw)
    debug["stripped_markup"] = speak != raw

    if len(speak) > max_chars:
        kept: list[str] = []
        length = 0
        for sentence in _split_sentences(speak):
            extra = len(sentence) + (1 if kept else 0)
            if length + extra > max_chars:
                break
            kept.append(sentence)
            length += extra
        if kept:
            speak = " ".join(kept)
        else:
            speak = speak[: max(0, max_chars - 1)].rstrip() + "…"
        debug["truncated"] = True

    if not speak:
        return None, debug

    debug["output_chars"] = len(speak)
    return speak, debug
