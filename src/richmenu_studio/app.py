"""Application bootstrap helpers for the Rich Menu Studio desktop app."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, cast

from .core.geometry import CanvasSize
from .editor.document_model import MenuDocument
from .services.line_api import LineApiGateway, ProxyGateway, RichMenuGateway
from .services.relay import PublishRelay
from .services.settings import Settings, SettingsStore, redact_secret
from .ui.domain.menu_store import MenuStore
from .ui.events import EventBus
from .ui.publish_controller import PublishController
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_NONE_VALUES = {"none", "null", ""}
_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure structured logging for the application."""

    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))
    _install_qt_message_handler()


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
    except (OSError, ValueError, TypeError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def build_gateway(settings: Settings) -> RichMenuGateway:
    """Return the relay gateway, or a direct LINE gateway when ``use_relay`` is off."""

    if settings.use_relay:
        _LOGGER.info("Publishing through relay %s (%s)", settings.relay_url, settings.runtime_context)
        return ProxyGateway(settings.relay_url, timeout=settings.request_timeout)
    _LOGGER.info("Publishing directly to %s", settings.line_api_base_url)
    return LineApiGateway(
        api_base_url=settings.line_api_base_url,
        data_api_base_url=settings.line_data_api_base_url,
        timeout=settings.request_timeout,
    )


def initial_document(settings: Settings) -> MenuDocument:
    try:
        size = CanvasSize.from_preset(settings.default_canvas_preset)
    except ValueError:
        _LOGGER.warning("Unknown default_canvas_preset %r; using full size", settings.default_canvas_preset)
        size = CanvasSize.full()
    return MenuDocument(size=size)


def create_qapp(settings: Settings) -> QtRuntime:
    """Create a qasync-powered QApplication instance."""

    from PySide6.QtWidgets import QApplication
    from qasync import QEventLoop

    del settings
    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName("Rich Menu Studio")
    app.setApplicationDisplayName("Rich Menu Studio")

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)
    return QtRuntime(app=app, loop=loop)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `richmenu-studio` console script."""

    args, passthrough = _parse_cli_args(argv)
    _rewrite_sys_argv(passthrough)

    debug = _env_flag("RICHMENU_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("RICHMENU_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    overrides_mapping: Dict[str, Any] | None = cli_overrides or None
    settings = load_settings(resolved_path, store=settings_store, overrides=overrides_mapping)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    runtime = create_qapp(settings)
    from .ui.presentation.main_window import MainWindow, WindowContext

    bus = EventBus()
    store = MenuStore(initial_document(settings), event_bus=bus)
    gateway = build_gateway(settings)
    publisher = PublishController(store, PublishRelay(gateway), status_timeout_ms=settings.status_timeout_ms)
    window = MainWindow(
        WindowContext(store=store, publisher=publisher, settings=settings, settings_store=settings_store)
    )
    window.show()

    loop = runtime.loop
    try:
        loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")
    finally:
        with contextlib.suppress(RuntimeError):
            loop.run_until_complete(_close_gateway(gateway))
        _drain_event_loop(loop)
        loop.close()


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _drain_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel publish tasks still pending at exit, then close async generators."""

    if loop.is_closed():
        return

    async def _cancel_pending() -> None:
        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current and not task.done()]
        if pending:
            _LOGGER.debug("Canceling %s pending task(s) before shutdown.", len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        await loop.shutdown_asyncgens()
        with contextlib.suppress(NotImplementedError):
            await loop.shutdown_default_executor()

    try:
        loop.run_until_complete(_cancel_pending())
    except RuntimeError as exc:  # pragma: no cover - loop already running
        _LOGGER.debug("Unable to drain asyncio loop: %s", exc)


async def _close_gateway(gateway: RichMenuGateway | None) -> None:
    """Close the gateway's HTTP client."""

    if gateway is None:
        return
    try:
        await gateway.aclose()
    except Exception as exc:  # pragma: no cover - shutdown logging only
        _LOGGER.debug("Gateway shutdown failed: %s", exc)


def _install_qt_message_handler() -> None:
    """Redirect Qt warnings to the Python logging stack."""

    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    level_map = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _handler(mode, context, message):  # type: ignore[no-untyped-def]
        del context
        level = level_map.get(mode, logging.INFO)
        logging.getLogger("PySide6").log(level, message)

    qInstallMessageHandler(_handler)


def _parse_cli_args(argv: Sequence[str] | None) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(
        prog="richmenu-studio",
        add_help=True,
        description="Launch the Rich Menu Studio editor or inspect its configuration.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.richmenu_studio/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings before launch (repeatable).",
    )
    return parser.parse_known_args(argv)


def _rewrite_sys_argv(passthrough: Sequence[str]) -> None:
    program = sys.argv[0] if sys.argv else "richmenu-studio"
    sys.argv = [program, *passthrough]


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``KEY=VALUE`` entries into typed :class:`Settings` overrides."""

    overrides: Dict[str, Any] = {}
    defaults = asdict(Settings())
    for entry in items:
        key, sep, raw_value = entry.partition("=")
        key = key.strip()
        if not sep:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in defaults:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _parse_override(key, raw_value.strip(), defaults[key])
    return overrides


def _parse_override(key: str, raw_value: str, default: Any) -> Any:
    # Settings only declares str, bool, int, float, list[str] and optional str fields.
    if default is None:
        return None if raw_value.lower() in _NONE_VALUES else raw_value
    if isinstance(default, bool):
        return _parse_bool(key, raw_value)
    if isinstance(default, int):
        return int(raw_value, 10)
    if isinstance(default, float):
        return float(raw_value)
    if isinstance(default, list):
        return _parse_origins(key, raw_value)
    return raw_value


def _parse_origins(key: str, raw_value: str) -> list[str]:
    try:
        value = json.loads(raw_value or "[]")
    except json.JSONDecodeError as exc:
        raise ValueError(f"'{key}' expects a JSON array of strings.") from exc
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' expects a JSON array of strings.")
    return value


def _parse_bool(key: str, raw_value: str) -> bool:
    lowered = raw_value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"'{key}' expects a boolean, got '{raw_value}'.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    payload["access_token"] = redact_secret(payload.get("access_token", ""))
    metadata = {
        "path": str(store.path),
        "secret_backend": store.vault.name,
        "relay_url": settings.relay_url,
        "log_path": str(logging_utils.get_log_path() or ""),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": payload, "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("RICHMENU_"))
