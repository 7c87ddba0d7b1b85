"""Preview the intent and system prompt context the coach would receive."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pulse.logging_config import configure_logging
from pulse.models.schemas import AthleteProfile
from pulse.services.context_router import (
    DEFAULT_PLAN_PATH,
    build_dynamic_context,
    detect_intent,
)
from pulse.services.token_utils import MAX_CONTEXT_TOKENS


logger = logging.getLogger("scripts.preview_context")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Preview coach context for a message",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Logistics question on a Phase 1 Monday
  python scripts/preview_context.py "What's my workout today?" --day monday

  # Injury report in Phase 5, non-testing week (re-enters Phase 1 content)
  python scripts/preview_context.py "My knee hurts" --phase 5 --week 46

  # Follow-up after an earlier question
  python scripts/preview_context.py "Why?" --history "Show me my squat progress"

  # Fill weights and paces from a benchmark profile (JSON)
  python scripts/preview_context.py "Workout today?" --profile me.json
        """,
    )
    parser.add_argument("message", help="Latest user message")
    parser.add_argument("--phase", type=int, default=1, choices=range(1, 6), help="Program phase (1-5)")
    parser.add_argument("--week", type=int, default=1, help="Absolute program week")
    parser.add_argument("--day", help="Weekday name (defaults to today)")
    parser.add_argument(
        "--history",
        action="append",
        default=[],
        help="Earlier user message (repeatable, oldest first)",
    )
    parser.add_argument("--plan", type=Path, default=DEFAULT_PLAN_PATH, help="Master plan markdown file")
    parser.add_argument("--profile", type=Path, help="Athlete profile JSON used to fill weights and paces")
    return parser.parse_args(argv)


async def _preview(args: argparse.Namespace) -> str:
    messages = [{"role": "user", "content": text} for text in args.history]
    messages.append({"role": "user", "content": args.message})

    profile = AthleteProfile.model_validate_json(args.profile.read_text(encoding="utf-8")) if args.profile else None
    intent = detect_intent(messages)
    payload = await build_dynamic_context(
        intent,
        args.phase,
        args.week,
        messages,
        args.day,
        profile=profile,
        plan_path=args.plan,
        max_context_tokens=MAX_CONTEXT_TOKENS,
    )

    lines = [
        f"Intent: {payload.intent.value}",
        f"Tokens: {payload.token_estimate}",
        f"Tools: {', '.join(payload.suggested_tools) or '-'}",
        "=" * 50,
        payload.system_prompt_additions,
    ]
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging()

    if args.week < 1:
        logger.error("Invalid week: %s. Weeks start at 1", args.week)
        sys.exit(1)

    print(asyncio.run(_preview(args)))


if __name__ == "__main__":
    main()
