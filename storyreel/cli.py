#!/usr/bin/env python3
"""
storyreel — command-line entry point.

Subcommands
-----------
  storyreel generate   Full pipeline: text → speech → captions → video
  storyreel captions   Caption track only, for a given audio duration (or file)
  storyreel probe      Print the CapabilityReport for a background selector
  storyreel plan       Print the RenderPlan that would be used (no render)

Exit codes: 0 success, 1 backend failure, 2 client input problem.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import PipelineError
from .pipeline.duration import measure_duration
from .pipeline.orchestrator import NarrationPipeline
from .renderer.capabilities import CapabilityProber
from .renderer.captions import build_srt, build_captions, write_srt
from .renderer.plan_builder import build_plan
from .schemas.narration import NarrationRequest
from .settings import Settings, get_settings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CLIENT_ERROR = 2


# =============================================================================
# Helpers
# =============================================================================

def _read_text(text: Optional[str], text_file: Optional[Path]) -> str:
    if text_file is not None:
        return text_file.read_text(encoding="utf-8")
    return text or ""


def _request_from_args(args: argparse.Namespace) -> NarrationRequest:
    return NarrationRequest(
        title=args.title or "",
        body_text=_read_text(args.text, args.text_file),
        voice_selector=args.voice,
        background_selector=args.background,
        max_duration_seconds=args.max_duration,
        source_url=getattr(args, "url", None),
    )


# =============================================================================
# Commands
# =============================================================================

def cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    """Run the whole pipeline; print the RunSummary JSON."""
    try:
        request = _request_from_args(args)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CLIENT_ERROR

    run = NarrationPipeline.from_settings(settings).start(request)
    try:
        run.execute()
    except PipelineError as exc:
        print(run.summary().model_dump_json(indent=2))
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CLIENT_ERROR if exc.client_error else EXIT_FAILED

    print(run.summary().model_dump_json(indent=2))
    return EXIT_OK


def cmd_captions(args: argparse.Namespace, settings: Settings) -> int:
    """Write (or print) the SRT for a text and an audio duration."""
    try:
        text = _read_text(args.text, args.text_file)
        if args.audio is not None:
            duration = measure_duration(args.audio, settings.ffprobe_binary)
        else:
            duration = args.duration
    except (OSError, PipelineError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILED

    if not text.strip():
        print("ERROR: no narration text", file=sys.stderr)
        return EXIT_CLIENT_ERROR

    track = build_captions(text, duration)
    if args.out is not None:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        write_srt(track, args.out)
    else:
        sys.stdout.write(build_srt(track))
    return EXIT_OK


def cmd_probe(args: argparse.Namespace, settings: Settings) -> int:
    report = CapabilityProber.from_settings(settings).probe(args.background)
    print(report.model_dump_json(indent=2))
    return EXIT_OK


def cmd_plan(args: argparse.Namespace, settings: Settings) -> int:
    """Probe, then print the RenderPlan for the given request options."""
    request = NarrationRequest(
        title=args.title or "",
        background_selector=args.background,
        max_duration_seconds=args.max_duration,
    )
    report = CapabilityProber.from_settings(settings).probe(request.background_selector)
    plan = build_plan(
        report,
        request,
        caption_file=args.captions,
        default_title=settings.default_title,
        solid_color=settings.solid_color,
    )
    print(plan.model_dump_json(indent=2))
    return EXIT_OK


# =============================================================================
# CLI entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storyreel",
        description="storyreel — narrated vertical video renderer",
    )
    parser.add_argument(
        "--log-level", default=None, metavar="LEVEL",
        help="Logging level (default: STORYREEL_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ── storyreel generate ────────────────────────────────────────────────────
    gen = sub.add_parser("generate", help="Text → speech → captions → video")
    source = gen.add_mutually_exclusive_group()
    source.add_argument("--text", help="Narration text")
    source.add_argument("--text-file", type=Path, metavar="PATH", help="Read narration from a UTF-8 file")
    gen.add_argument("--url", help="Reddit post URL to narrate (used when no text is given)")
    gen.add_argument("--title", default="", help="Title burned into the video")
    gen.add_argument("--voice", default="female-calm", help="Voice selector (default: female-calm)")
    gen.add_argument("--background", default="abstract", help="Background selector or 'solid'")
    gen.add_argument("--max-duration", type=float, default=None, metavar="SECONDS",
                     help="Truncate the video to this many seconds")

    # ── storyreel captions ────────────────────────────────────────────────────
    cap = sub.add_parser("captions", help="Build an SRT caption track")
    cap_source = cap.add_mutually_exclusive_group(required=True)
    cap_source.add_argument("--text", help="Narration text")
    cap_source.add_argument("--text-file", type=Path, metavar="PATH")
    cap_timing = cap.add_mutually_exclusive_group(required=True)
    cap_timing.add_argument("--duration", type=float, metavar="SECONDS", help="Audio duration")
    cap_timing.add_argument("--audio", type=Path, metavar="PATH", help="Measure duration from this file")
    cap.add_argument("--out", type=Path, default=None, metavar="PATH",
                     help="Write the SRT here (default: stdout)")

    # ── storyreel probe ───────────────────────────────────────────────────────
    probe = sub.add_parser("probe", help="Print the CapabilityReport")
    probe.add_argument("--background", default="abstract")

    # ── storyreel plan ────────────────────────────────────────────────────────
    plan = sub.add_parser("plan", help="Print the RenderPlan (no render)")
    plan.add_argument("--background", default="abstract")
    plan.add_argument("--title", default="")
    plan.add_argument("--captions", type=Path, default=None, metavar="PATH")
    plan.add_argument("--max-duration", type=float, default=None, metavar="SECONDS")

    return parser


_COMMANDS = {
    "generate": cmd_generate,
    "captions": cmd_captions,
    "probe": cmd_probe,
    "plan": cmd_plan,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return _COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
