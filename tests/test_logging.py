"""Tests for logging setup."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Iterator

import pytest

from richmenu_studio.utils import logging as logging_utils


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler) or type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging_utils._CONFIGURED = False  # noqa: SLF001 - reset module state between tests
    logging_utils._LOG_PATH = None  # noqa: SLF001


def test_setup_logging_writes_rotating_file(tmp_path: Path, restore_root_logging: None) -> None:
    path = logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False, force=True)

    logging.getLogger("richmenu_studio.test").info("hello %s", "world")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert path == tmp_path / "richmenu_studio.log"
    assert logging_utils.get_log_path() == path
    assert "hello world" in path.read_text(encoding="utf-8")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_honours_env_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, restore_root_logging: None
) -> None:
    monkeypatch.setenv("RICHMENU_LOG_DIR", str(tmp_path / "env-logs"))

    path = logging_utils.setup_logging(console=False, force=True)

    assert path.parent == tmp_path / "env-logs"


def test_setup_logging_is_idempotent(tmp_path: Path, restore_root_logging: None) -> None:
    first = logging_utils.setup_logging(log_dir=tmp_path / "a", console=False, force=True)
    second = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False)

    assert second == first
