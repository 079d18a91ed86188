"""Main entry point for the expertise interview application."""

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

from src import __version__
from src.config.settings import Settings
from src.utils.logging import configure_logging


def _timestamp_run_id(prefix: str) -> str:
    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}"


def _resolve_run_dir(
    settings: Settings, *, prefix: str, out_run_dir: Path | None
) -> Path:
    if out_run_dir is not None:
        run_dir = out_run_dir
    else:
        run_dir = settings.output_dir / "runs" / _timestamp_run_id(prefix)
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def _write_json(path: Path, payload: object) -> None:
    def _default(value: object):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            return model_dump(mode="json", by_alias=True)
        return str(value)

    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False, default=_default),
        encoding="utf-8",
    )


def _print_analysis(result) -> None:
    analysis = result.payload
    print()
    print(f"Expertise score: {analysis.expertise_score}/100 (tier: {result.tier_used.value})")
    print(f"Insight: {analysis.personalized_insight}")
    print(f"Business hint: {analysis.business_hint}")
    if analysis.market_opportunity:
        print(f"Market opportunity: {analysis.market_opportunity}")
    if analysis.success_probability_text:
        print(f"Success probability: {analysis.success_probability_text}")
    for strength in analysis.key_strengths:
        print(f"  - {strength}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="expert-interview",
        description="Adaptive expertise interview with tiered LLM inference",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src interview
  python -m src interview --static --name "Kim"
  python -m src analyze --answers answers.json
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(
        dest="mode",
        title="modes",
        description="Available operating modes",
    )

    interview_parser = subparsers.add_parser(
        "interview",
        help="Run an interactive interview in the terminal",
    )
    interview_parser.add_argument(
        "--static",
        action="store_true",
        help="Offline mode: skip every network tier and use the built-in questions",
    )
    interview_parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Respondent name used in the analysis (overrides RESPONDENT_NAME)",
    )
    interview_parser.add_argument(
        "--no-analysis",
        action="store_true",
        help="Export answers only; skip the expertise analysis",
    )
    interview_parser.add_argument(
        "--out-run-dir",
        type=Path,
        default=None,
        help="Optional output run directory (defaults under artifacts/runs/)",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze previously exported answers (JSON or YAML)",
    )
    analyze_parser.add_argument(
        "--answers",
        type=Path,
        required=True,
        help=(
            "Path to answers file (an interview answers.json, q1, q2, ... "
            "or expertise_field, basic_name, ...)"
        ),
    )
    analyze_parser.add_argument(
        "--static",
        action="store_true",
        help="Offline mode: skip every network tier and use the built-in analysis",
    )
    analyze_parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Respondent name used in the analysis (overrides RESPONDENT_NAME)",
    )
    analyze_parser.add_argument(
        "--out-run-dir",
        type=Path,
        default=None,
        help="Optional output run directory (defaults under artifacts/runs/)",
    )

    return parser


def _build_service(static: bool):
    from src.inference.config import InferenceConfig
    from src.interview.service import InterviewService

    config = InferenceConfig(static_mode=True) if static else InferenceConfig()
    return InterviewService(config)


async def _interview_session(
    service,
    run_dir: Path,
    *,
    log_events: bool,
    analyze: bool,
    name: str | None,
):
    """Run the interview, export it, then analyze it on the same event loop."""
    from src.interview.events import attach_event_logger
    from src.interview.terminal import prompt_reply

    controller = service.new_controller()
    if log_events:
        attach_event_logger(service.bus)

    async def _responder(question):
        return prompt_reply(question, number=controller.turn_count + 1)

    snapshots = [
        snapshot
        async for snapshot in service.run_interview(_responder, controller=controller)
    ]

    exported = controller.export_answers()
    _write_json(
        run_dir / "answers.json",
        {str(index): answer for index, answer in exported.items()},
    )
    _write_json(run_dir / "transcript.json", snapshots[-1] if snapshots else {})
    print(f"\nInterview complete: {len(exported)} answers")
    print(f"Wrote: {run_dir / 'answers.json'}")

    if not analyze:
        return None

    analysis_input = controller.export_for_analysis()
    if name:
        analysis_input["basic_name"] = name
    return await service.analyze(analysis_input)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Configure logging
    log_level = parsed.log_level or settings.log_level
    logger = configure_logging(level=log_level)

    # If no mode specified, show help
    if parsed.mode is None:
        parser.print_help()
        return 0

    logger.info(f"expert-interview v{__version__} starting in {parsed.mode} mode")

    try:
        service = _build_service(parsed.static)
    except Exception as e:
        print(f"Error loading inference settings: {e}", file=sys.stderr)
        return 1

    name = parsed.name or settings.respondent_name

    if parsed.mode == "analyze":
        from src.interview.answers import load_answers

        try:
            answers = load_answers(parsed.answers)
        except (FileNotFoundError, ValueError) as e:
            logger.error(str(e))
            return 1

        if name and "basic_name" not in answers:
            answers["basic_name"] = name

        run_dir = _resolve_run_dir(
            settings, prefix="analyze", out_run_dir=parsed.out_run_dir
        )
        result = asyncio.run(service.analyze(answers))
        _write_json(run_dir / "analysis.json", result.to_dict())
        _print_analysis(result)
        print(f"Wrote: {run_dir / 'analysis.json'}")
        return 0

    if parsed.mode == "interview":
        run_dir = _resolve_run_dir(
            settings, prefix="interview", out_run_dir=parsed.out_run_dir
        )

        try:
            result = asyncio.run(
                _interview_session(
                    service,
                    run_dir,
                    log_events=settings.log_events,
                    analyze=not parsed.no_analysis,
                    name=name,
                )
            )
        except (KeyboardInterrupt, EOFError):
            print("\nInterview cancelled.", file=sys.stderr)
            return 130

        if result is None:
            return 0

        _write_json(run_dir / "analysis.json", result.to_dict())
        _write_json(run_dir / "usage.json", service.client.usage_monitor.summary())
        _print_analysis(result)
        print(f"Wrote: {run_dir / 'analysis.json'}")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
