"""Command-line interface for RegionSnip.

Entry point flow:
1. Parse arguments (introspection flags short-circuit)
2. Resolve configuration and the output path
3. Route to region (interactive) or full capture
4. Print exactly one outcome line on stdout and mirror it as a notification

Exit status: 0 for any completed outcome (including cancel and capture
errors), 2 for a missing output path, 1 for an unexpected failure.
"""

import argparse
import atexit
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from . import __version__
from .config import (
    Config,
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    validate_config_file,
)
from .emit import EVENT_CATALOG, configure, emit
from .errors import ConfigurationError, SessionBusy
from .instance import SessionLock
from .notify import notify_outcome
from .outcome import MODE_FULL, MODE_REGION, CaptureOutcome, Error, to_json

log = logging.getLogger(__name__)

MISSING_OUT = "Missing --out <path>"

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG = 2


def _mode(value: str) -> str:
    return value.strip().lower()


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI usage."""
    parser = argparse.ArgumentParser(
        prog="regionsnip",
        description="Capture a screen region or a whole screen to an image file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --out shot.png                          # Drag to select a region
  %(prog)s --out shot.jpg --quality 60             # Region as JPEG
  %(prog)s --mode full --out shot.png --monitor 1  # Second monitor, no UI
  %(prog)s --mode full --all --out desk.png        # Whole virtual desktop
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"regionsnip {__version__}",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-event-catalog",
        action="store_true",
        help="Print event catalog as JSON and exit",
    )

    # Capture
    parser.add_argument(
        "--mode",
        type=_mode,
        choices=[MODE_REGION, MODE_FULL],
        default=MODE_REGION,
        help="region: drag to select (default); full: capture without UI",
    )
    parser.add_argument(
        "--out",
        metavar="PATH",
        help="Output image path; .jpg/.jpeg writes JPEG, anything else PNG",
    )
    parser.add_argument(
        "--prompt",
        metavar="TEXT",
        help="Instruction text shown on the selection overlay",
    )
    parser.add_argument(
        "--monitor",
        metavar="N",
        help="Monitor index for full mode, 0-based (default: 0)",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Full mode: capture every monitor as one image",
    )
    parser.add_argument(
        "--quality",
        metavar="1-100",
        help="JPEG quality (default: 80)",
    )
    parser.add_argument(
        "--scale",
        metavar="0.1-1.0",
        help="Downscale factor (default: 1.0 for region, 0.75 for full)",
    )

    # Behavior
    parser.add_argument(
        "--no-notification",
        action="store_true",
        help="Do not show a desktop notification",
    )
    parser.add_argument(
        "--no-events",
        action="store_true",
        help="Do not write lifecycle events to stderr",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _parse_number(value: Optional[str], kind, flag: str):
    """Convert a numeric flag, ignoring values that do not parse."""
    if value is None:
        return None
    try:
        return kind(value)
    except ValueError:
        log.warning("Ignoring invalid %s value: %r", flag, value)
        return None


def _clamp(value, low, high):
    return max(low, min(high, value))


def resolve_quality(value: Optional[str], config: Config) -> int:
    quality = _parse_number(value, int, "--quality")
    if quality is None:
        quality = config.default_quality
    return _clamp(quality, 1, 100)


def resolve_scale(value: Optional[str], mode: str, config: Config) -> float:
    scale = _parse_number(value, float, "--scale")
    if scale is None:
        scale = config.full_scale if mode == MODE_FULL else config.region_scale
    return _clamp(scale, 0.1, 1.0)


def resolve_monitor(value: Optional[str]) -> int:
    monitor = _parse_number(value, int, "--monitor")
    return 0 if monitor is None else monitor


def resolve_output_path(value: Optional[str]) -> Path:
    """Validate the required output path.

    Raises:
        ConfigurationError: If no output path was given
    """
    if value is None or not value.strip():
        raise ConfigurationError(MISSING_OUT)
    return Path(value)


def ensure_parent_dir(path: Path) -> None:
    """Create the output directory; the encoder never creates directories."""
    if path.parent != Path(""):
        path.parent.mkdir(parents=True, exist_ok=True)


def write_outcome(outcome: CaptureOutcome) -> None:
    """Print the outcome as a single JSON line on stdout."""
    print(to_json(outcome), flush=True)


def _emit_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _handle_introspection(args: argparse.Namespace, config_path: Optional[Path]) -> Optional[int]:
    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        errors = validate_config_file(config_path)
        if errors:
            for error in errors:
                print(error, file=sys.stderr)
            return 1
        return 0

    if args.print_resolved:
        config = load_config(config_path=config_path)
        _emit_json(config_to_dict(config))
        return 0

    if args.print_event_catalog:
        _emit_json({"catalog": EVENT_CATALOG})
        return 0

    return None


def _start_operation(mode: str) -> str:
    operation_id = str(uuid.uuid4())
    emit("operation.started", {"operation_id": operation_id, "mode": mode})
    return operation_id


def _complete_operation(operation_id: str, mode: str, outcome: CaptureOutcome) -> None:
    emit("operation.completed", {
        "operation_id": operation_id,
        "mode": mode,
        "outcome": outcome.to_dict(),
    })


def handle_full_capture(
    args: argparse.Namespace,
    config: Config,
    output_path: Path,
    quality: int,
    scale: float,
) -> CaptureOutcome:
    """Handle non-interactive capture."""
    # Import here so introspection and argument errors never load GTK
    from .pipeline import run_full_capture

    return run_full_capture(
        args.all,
        resolve_monitor(args.monitor),
        output_path,
        quality,
        scale,
        config,
    )


def handle_region_capture(
    args: argparse.Namespace,
    config: Config,
    output_path: Path,
    quality: int,
    scale: float,
) -> CaptureOutcome:
    """Handle interactive region selection."""
    prompt = args.prompt if args.prompt is not None else config.prompt
    try:
        with SessionLock(config.lock_file):
            from .ui import run_region_session
            return run_region_session(prompt, output_path, quality, scale, config)
    except SessionBusy as e:
        emit("error.handled", {"error_type": "SessionBusy", "message": str(e), "mode": MODE_REGION})
        log.error("%s", e)
        return Error(str(e), MODE_REGION)


def run(args: argparse.Namespace, config: Config, output_path: Path) -> CaptureOutcome:
    quality = resolve_quality(args.quality, config)
    scale = resolve_scale(args.scale, args.mode, config)
    log.debug("mode=%s out=%s quality=%d scale=%.2f", args.mode, output_path, quality, scale)

    ensure_parent_dir(output_path)

    operation_id = _start_operation(args.mode)
    if args.mode == MODE_FULL:
        outcome = handle_full_capture(args, config, output_path, quality, scale)
    else:
        outcome = handle_region_capture(args, config, output_path, quality, scale)
    _complete_operation(operation_id, args.mode, outcome)
    return outcome


def _fail_unexpected(e: Exception, config: Config, mode: str) -> int:
    log.debug("Unexpected failure", exc_info=True)
    outcome = Error(str(e) or type(e).__name__)
    emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": mode})
    notify_outcome(outcome, config)
    write_outcome(outcome)
    return EXIT_UNEXPECTED


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    config_path = Path(parsed_args.config).expanduser() if parsed_args.config else None

    result = _handle_introspection(parsed_args, config_path)
    if result is not None:
        return result

    configure("regionsnip", stderr=not parsed_args.no_events)
    atexit.register(lambda: emit("shutdown", {}))

    overrides = {"enable_notification": False} if parsed_args.no_notification else None
    try:
        config = load_config(config_path=config_path, overrides=overrides)
    except Exception as e:
        return _fail_unexpected(e, Config(**(overrides or {})), parsed_args.mode)
    emit("config.resolved", {
        "config_path": str(config_path or "default"),
        "source": "cli" if config_path else "default",
    })

    try:
        output_path = resolve_output_path(parsed_args.out)
    except ConfigurationError as e:
        outcome = Error(str(e))
        emit("error.handled", {"error_type": "ConfigurationError", "message": str(e), "mode": None})
        notify_outcome(outcome, config)
        write_outcome(outcome)
        return EXIT_CONFIG

    try:
        outcome = run(parsed_args, config, output_path)
    except Exception as e:
        return _fail_unexpected(e, config, parsed_args.mode)

    write_outcome(outcome)
    notify_outcome(outcome, config)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
