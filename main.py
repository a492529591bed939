from __future__ import annotations

import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.explorer_vm import ExplorerVM
from app.views.async_bridge import AsyncBridge
from app.views.main_window import MainWindow
from core.services.clipboard_service import ClipboardService
from core.services.navigation_history import NavigationHistory
from core.services.operation_queue import FileOperationQueue
from infrastructure.favorites import FavoritesStore
from infrastructure.local_filesystem import LocalFileSystem, home_directory
from infrastructure.logging import get_data_directory, init_logging
from infrastructure.settings import JsonSettings


BASE_DIR = Path(__file__).parent


def _timeout_setting(settings: JsonSettings) -> float | None:
    raw = settings.get("queue.operation_timeout_seconds")
    try:
        value = float(raw) if raw is not None else None
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid operation timeout: {!r}", raw)
        return None
    return value if value and value > 0 else None


def _start_path(settings: JsonSettings, argv: list[str]) -> str:
    if len(argv) > 1 and os.path.isdir(argv[1]):
        return argv[1]
    last = settings.get("navigation.last_path")
    if settings.get("navigation.remember_last_path", True) and last and os.path.isdir(last):
        return str(last)
    return home_directory()


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    init_logging(level=str(settings.get("advanced.log_level", "INFO") or "INFO"))

    app = QApplication(sys.argv)

    facade = LocalFileSystem(
        use_recycle_bin=bool(settings.get("behavior.use_recycle_bin", True)),
        include_hidden=bool(settings.get("view.show_hidden_files", False)),
    )
    queue = FileOperationQueue(
        facade,
        concurrency_limit=int(settings.get("queue.concurrency_limit", 3) or 3),
        operation_timeout=_timeout_setting(settings),
    )
    history = NavigationHistory(int(settings.get("navigation.max_history_size", 50) or 50))
    vm = ExplorerVM(facade, queue, history, clipboard=ClipboardService(), settings=settings)
    favorites = FavoritesStore(Path(get_data_directory()) / "favorites.json")

    bridge = AsyncBridge(vm)
    win = MainWindow(bridge=bridge, favorites=favorites, settings=settings)
    bridge.start()

    start = _start_path(settings, sys.argv)
    logger.info("Starting in {}", start)
    win.open_path(start)
    win.show()

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
