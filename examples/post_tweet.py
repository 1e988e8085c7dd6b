#!/usr/bin/env python
"""
Example: post a status update, optionally with media, using twit_client.

Usage:
    python examples/post_tweet.py "Hello from twit_client!"
    python examples/post_tweet.py "Check out this clip" --media path/to/video.mp4

Requirements:
    Set environment variables, a .env file, or credentials/twit_config.json:
    - TWITTER_CONSUMER_KEY
    - TWITTER_CONSUMER_SECRET
    - TWITTER_ACCESS_TOKEN
    - TWITTER_ACCESS_TOKEN_SECRET
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from twit_client import ConfigError, ConfigManager, Twit


async def run(args: argparse.Namespace) -> int:
    config = ConfigManager(config_path=args.config).load_config()
    client = Twit(config)

    params: dict[str, object] = {"status": args.text}
    if args.media:
        print(f"Uploading media: {args.media}")
        upload = await client.post_media_chunked({"file_path": args.media})
        if upload.error:
            print(f"Media upload failed: {upload.error}")
            return 1
        params["media_ids"] = [upload.data["media_id_string"]]
        print(f"Media uploaded: {upload.data['media_id_string']}")

    err, data, _ = await client.post("statuses/update", params)
    if err:
        print(f"Twitter API error: {err}")
        for entry in err.all_errors:
            print(f"  - {entry}")
        return 1

    print(f"Status posted: https://twitter.com/i/web/status/{data['id_str']}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Post a status update with optional media")
    parser.add_argument("text", help="Status text")
    parser.add_argument("--media", type=Path, help="Image or video to attach")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to credentials JSON file (default: credentials/twit_config.json)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log requests")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return asyncio.run(run(args))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
