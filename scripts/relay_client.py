#!/usr/bin/env python

import argparse
import asyncio
import os
import sys
from pathlib import Path

import httpx


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Send a question to a running voice relay and save the spoken reply")

    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--text", help="Question text, sent to /api/text")
    g.add_argument("--audio-file", help="Recorded question, uploaded to /api/voice")

    p.add_argument(
        "--url",
        default=os.getenv("RELAY_URL", "http://localhost:5000"),
        help="Relay base URL (default: RELAY_URL or http://localhost:5000)",
    )
    p.add_argument(
        "--out",
        default=os.getenv("RELAY_OUT", "reply.mp3"),
        help="Where to write the MP3 reply (default: RELAY_OUT or reply.mp3)",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=float(os.getenv("RELAY_TIMEOUT_S", "120") or "120"),
        help="Request timeout in seconds (default: RELAY_TIMEOUT_S or 120)",
    )

    return p


async def send(args, transport: httpx.AsyncBaseTransport | None = None) -> Path:
    out = Path(args.out)

    async with httpx.AsyncClient(base_url=args.url, timeout=args.timeout, transport=transport) as client:
        if args.text is not None:
            response = await client.post("/api/text", json={"text": args.text})
        else:
            audio_path = Path(args.audio_file)
            if not audio_path.is_file():
                raise RuntimeError(f"Audio file not found: {audio_path}")
            files = {"audio_file": (audio_path.name, audio_path.read_bytes(), "application/octet-stream")}
            response = await client.post("/api/voice", files=files)

    if response.status_code != 200:
        raise RuntimeError(f"Relay returned {response.status_code}: {response.text[:300]}")

    out.write_bytes(response.content)
    return out


async def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    out = await send(args)
    print(f"Saved reply to {out}", flush=True)


if __name__ == "__main__":
    try:
        asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        raise SystemExit(0)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
