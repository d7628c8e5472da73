#!/usr/bin/env python3
"""
Generate placeholder background clips.

Creates one short portrait test-pattern clip per named background so the
NAMED_BACKGROUND_CLIP path can be exercised without real footage:

    <assets_dir>/bg/gaming.mp4
    <assets_dir>/bg/abstract.mp4
    <assets_dir>/bg/city.mp4
    <assets_dir>/bg/nature.mp4

Usage:
    python scripts/generate_backgrounds.py              # uses STORYREEL_ASSETS_DIR or ./assets
    python scripts/generate_backgrounds.py --out /srv/assets --duration 20

Requirements:
    - ffmpeg must be installed and in PATH
"""

import argparse
import subprocess
import sys
from pathlib import Path

from storyreel.renderer.ffmpeg_runner import FFmpegNotFound, validate_ffmpeg
from storyreel.renderer.plan_builder import BACKGROUND_CLIPS
from storyreel.settings import get_settings

# lavfi source per background name; all are built into every ffmpeg build.
_SOURCES = {
    "gaming": "testsrc2",
    "abstract": "testsrc",
    "city": "smptebars",
    "nature": "rgbtestsrc",
}


def create_background(output_path: Path, source: str, duration: int, width: int, height: int, fps: int):
    """Encode *duration* seconds of the lavfi *source* pattern as H.264."""
    if output_path.exists() and output_path.stat().st_size > 0:
        print(f"  Skipping {output_path.name} (already exists)")
        return
    print(f"  Creating {output_path.name} ({source}, {duration}s)...")

    cmd = [
        "ffmpeg", "-hide_banner", "-y",
        "-f", "lavfi",
        "-i", f"{source}=duration={duration}:size={width}x{height}:rate={fps}",
        "-pix_fmt", "yuv420p",
        "-c:v", "libx264",
        "-preset", "ultrafast",
        "-an",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    print(f"    ✅ Created {output_path.name} ({output_path.stat().st_size} bytes)")


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Generate placeholder background clips")
    parser.add_argument("--out", type=Path, default=settings.assets_dir,
                        help="Assets directory; clips go to <out>/bg/ (default: %(default)s)")
    parser.add_argument("--duration", type=int, default=10, help="Clip length in seconds")
    parser.add_argument("--width", type=int, default=1080)
    parser.add_argument("--height", type=int, default=1920)
    parser.add_argument("--fps", type=int, default=30)
    args = parser.parse_args()

    try:
        print("✅ ffmpeg found:", validate_ffmpeg())
    except FFmpegNotFound as exc:
        print(f"❌ {exc}")
        sys.exit(1)

    bg_dir = args.out / "bg"
    bg_dir.mkdir(parents=True, exist_ok=True)
    print(f"\n🎬 Generating background clips in: {bg_dir}\n")

    try:
        for name, filename in BACKGROUND_CLIPS.items():
            create_background(
                bg_dir / filename, _SOURCES[name], args.duration, args.width, args.height, args.fps,
            )
    except subprocess.CalledProcessError as e:
        print(f"\n❌ Error generating {e.cmd[-1]}")
        if e.stderr:
            print(f"   ffmpeg error: {e.stderr.decode()}")
        sys.exit(1)

    print("\n✅ Done. Check with: storyreel probe --background gaming\n")


if __name__ == "__main__":
    main()
