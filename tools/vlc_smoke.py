"""Manual VLC media resource smoke test: play one clip through the coordinator."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from clipmap.runtime_config import DEFAULT_PROXY_PREFIX
from clipmap.services.loading_indicator import LoadingIndicatorManager
from clipmap.services.playback_coordinator import PlaybackCoordinator
from clipmap.services.url_canonicalizer import canonicalize
from clipmap.services.vlc_media import VLCMediaResource


async def _run(source: str, proxy_prefix: str, seconds: float) -> None:
    coordinator = PlaybackCoordinator(
        resource=VLCMediaResource(),
        indicators=LoadingIndicatorManager(on_change=print),
    )
    coordinator.subscribe(print)
    await coordinator.start()
    task = coordinator.play_url(
        "smoke", canonicalize(source, proxy_prefix=proxy_prefix)
    )
    if task is not None:
        await task
    await asyncio.sleep(seconds)
    await coordinator.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="VLC media resource smoke test.")
    parser.add_argument("source", help="Audio file path, media URL or share link.")
    parser.add_argument("--proxy-prefix", default=DEFAULT_PROXY_PREFIX)
    parser.add_argument("--seconds", type=float, default=5.0)
    args = parser.parse_args()
    asyncio.run(_run(args.source, args.proxy_prefix, args.seconds))


if __name__ == "__main__":
    main()
