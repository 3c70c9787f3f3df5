"""Command-line entry point: run one Scribeline edit against a Markdown file."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .ai.client import AIClient, ClientSettings
from .ai.orchestration import EditOrchestrator, EditResult, EditSession
from .core.ranges import Position
from .editor.buffer import InMemoryBuffer
from .errors import EditError
from .services.settings import ENDPOINT_PRESETS, Settings, SettingsStore, apply_preset, redact_secret
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure file + console logging for the command line."""

    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def build_client(settings: Settings, *, debug_logging: bool = False) -> AIClient:
    """Construct the generation client from the effective settings."""

    client_settings = ClientSettings(
        base_url=settings.base_url,
        api_key=settings.api_key,
        model=settings.model,
        organization=settings.organization,
        temperature=settings.temperature,
        request_timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        retry_min_seconds=settings.retry_min_seconds,
        retry_max_seconds=settings.retry_max_seconds,
        default_headers=settings.default_headers or None,
        debug_logging=debug_logging or settings.debug_logging,
    )
    return AIClient(client_settings)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``scribeline`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = _env_flag("SCRIBELINE_DEBUG")
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("SCRIBELINE_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        parser.error(f"invalid --set override: {exc}")

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    if args.endpoint:
        settings = apply_preset(settings, args.endpoint)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return 0

    if args.path is None:
        parser.error("PATH is required unless --dump-settings is given")
    if not args.instruction:
        parser.error("--instruction is required")

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)
        debug = True

    path = Path(args.path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        parser.error(f"cannot read {path}: {exc}")

    try:
        buffer = _build_buffer(text, cursor=args.cursor, select=args.select)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        result = asyncio.run(_run_edit(settings, buffer, mode=args.mode, instruction=args.instruction, debug=debug))
    except EditError as exc:
        print(f"scribeline: {exc}", file=sys.stderr)
        if exc.suggestion:
            print(exc.suggestion, file=sys.stderr)
        return 1

    if args.dry_run:
        sys.stdout.write(buffer.text)
    else:
        path.write_text(buffer.text, encoding="utf-8")
        _LOGGER.info("Wrote %s (%s, %d chars)", path, result.mode, len(result.text))
    print(result.message, file=sys.stderr)
    return 0


async def _run_edit(
    settings: Settings,
    buffer: InMemoryBuffer,
    *,
    mode: str,
    instruction: str,
    debug: bool = False,
) -> EditResult:
    client = build_client(settings, debug_logging=debug)
    orchestrator = EditOrchestrator(EditSession(settings=settings), client)
    try:
        return await orchestrator.run_edit(buffer, mode=mode, instruction=instruction)
    finally:
        await client.aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scribeline",
        description="Rewrite the selection or insert model-generated text into a Markdown file.",
    )
    parser.add_argument("path", nargs="?", metavar="PATH", help="Markdown file to edit in place.")
    parser.add_argument("--instruction", "-i", metavar="TEXT", help="What the model should write.")
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--cursor",
        metavar="LINE:COL",
        help="Zero-based insertion point (default: end of document).",
    )
    target.add_argument(
        "--select",
        metavar="L:C-L:C",
        help="Zero-based selection to replace or insert after.",
    )
    parser.add_argument(
        "--mode",
        choices=("auto", "insert", "replace"),
        default="auto",
        help="auto replaces a non-empty selection and inserts otherwise.",
    )
    parser.add_argument(
        "--endpoint",
        choices=sorted(ENDPOINT_PRESETS),
        help="Use a preset base URL for this run.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.scribeline/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the edited document instead of writing the file.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    return parser


def _build_buffer(text: str, *, cursor: str | None, select: str | None) -> InMemoryBuffer:
    buffer = InMemoryBuffer(text)
    if cursor:
        buffer.set_cursor(Position.from_value(cursor))
    elif select:
        if "-" not in select:
            raise ValueError(f"--select '{select}' must use L:C-L:C syntax")
        start_raw, end_raw = select.split("-", 1)
        start = buffer.pos_to_offset(Position.from_value(start_raw))
        end = buffer.pos_to_offset(Position.from_value(end_raw))
        buffer.set_selection(start, end)
    return buffer


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def _parse_flag(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES or lowered in _FALSE_VALUES:
        return lowered in _TRUE_VALUES
    raise ValueError(f"'{raw}' is not a boolean")


def _parse_object(raw: str) -> Dict[str, Any]:
    try:
        value = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"'{raw}' is not a JSON object") from exc
    if not isinstance(value, dict):
        raise ValueError(f"'{raw}' is not a JSON object")
    return value


_CONVERTERS: Dict[Any, Callable[[str], Any]] = {
    bool: _parse_flag,
    int: lambda raw: int(raw, 10),
    float: float,
    dict: _parse_object,
}


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn repeated ``--set KEY=VALUE`` options into typed settings overrides."""

    hints = get_type_hints(Settings)
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, sep, raw = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"'{entry}' must use KEY=VALUE syntax")
        if key not in hints:
            raise ValueError(f"unknown setting '{key}'")
        convert = _CONVERTERS.get(_base_type(hints[key]), str)
        overrides[key] = convert(raw.strip())
    return overrides


def _base_type(annotation: Any) -> Any:
    """Reduce ``X | None`` and ``dict[K, V]`` to ``X`` and ``dict``."""

    origin = get_origin(annotation)
    if origin is None or origin is dict:
        return origin or annotation
    members = [arg for arg in get_args(annotation) if arg is not type(None)]
    return members[0] if members else origin


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    out = stream or sys.stdout
    report = {
        "settings": {**asdict(settings), "api_key": redact_secret(settings.api_key)},
        "meta": {
            "path": str(store.path),
            "secret_backend": store.vault.strategy,
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith("SCRIBELINE_")),
        },
    }
    out.write(json.dumps(report, indent=2) + "\n")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
