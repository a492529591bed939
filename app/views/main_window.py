"""MainWindow: toolbar, favorites sidebar, listing and operations panel.

The window owns no filesystem logic. Navigation and operations are sent to
the view-model through the `AsyncBridge`; listing snapshots and operation
events come back as Qt signals.
"""

from __future__ import annotations

import os
from typing import Any

from PySide6.QtCore import QModelIndex, Qt
from PySide6.QtWidgets import (
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QStyle,
    QToolButton,
    QTreeView,
)
from loguru import logger

from app.viewmodels.explorer_vm import ListingState
from app.views.async_bridge import AsyncBridge
from app.views.components.menu_controller import MenuController
from app.views.components.tree_controller import TreeController
from app.views.constants import (
    FAV_ID_ROLE,
    PATH_ROLE,
    SORT_FIELD_BY_COLUMN,
    describe_exception,
)
from app.views.handlers.context_menu import ContextMenuHandler
from app.views.handlers.file_operations import FileOperationsHandler
from app.views.layout.layout_manager import LayoutManager
from app.views.widgets.operations_panel import OperationsPanel, describe_operation
from core.models import ClipboardContent, FileItem, Operation, OperationStatus
from infrastructure.favorites import FavoritesStore
from infrastructure.logging import open_latest_log, open_log_directory


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(
        self,
        bridge: AsyncBridge,
        favorites: FavoritesStore | None = None,
        settings: Any | None = None,
    ) -> None:
        """Initialize MainWindow with all services and components.

        Args:
            bridge: Bridge to the view-model's event loop
            favorites: Favorites store for the sidebar
            settings: Settings instance for configuration
        """
        super().__init__()
        self._bridge = bridge
        self._vm = bridge.vm
        self._favorites = favorites
        self._settings = settings
        self._state = ListingState(path=None)

        self._setup_components()
        self._setup_ui()
        self._connect_signals()
        self.statusBar().showMessage("Ready", 3000)

    def _setup_components(self) -> None:
        """Setup all extracted components and controllers."""
        self.tree = QTreeView()
        self.tree_controller = TreeController(self.tree)
        self.menu_controller = MenuController(self)
        self.layout_manager = LayoutManager(self)
        self.status_reporter = StatusReporterImpl(self)

        self.file_operations = FileOperationsHandler(
            bridge=self._bridge,
            settings=self._settings,
            parent_widget=self,
            status_reporter=self.status_reporter,
        )
        self.action_handlers = ActionHandlersImpl(self.file_operations, self)
        self.context_menu_handler = ContextMenuHandler(
            tree_view=self.tree,
            selection_provider=self.tree_controller,
            action_handlers=self.action_handlers,
            parent_widget=self,
        )

        self.favorites_list = QListWidget()
        self.operations_panel = OperationsPanel()

        self.path_edit = QLineEdit()
        self.path_edit.setPlaceholderText("Path")
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Filter by name")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.setMaximumWidth(240)

        style = self.style()
        self.btn_back = self._tool_button(style.standardIcon(QStyle.SP_ArrowBack), "Back")
        self.btn_forward = self._tool_button(style.standardIcon(QStyle.SP_ArrowForward), "Forward")
        self.btn_up = self._tool_button(style.standardIcon(QStyle.SP_ArrowUp), "Up")
        self.btn_home = self._tool_button(style.standardIcon(QStyle.SP_DirHomeIcon), "Home")
        self.btn_refresh = self._tool_button(style.standardIcon(QStyle.SP_BrowserReload), "Refresh")

    @staticmethod
    def _tool_button(icon, tooltip: str) -> QToolButton:
        btn = QToolButton()
        btn.setIcon(icon)
        btn.setToolTip(tooltip)
        btn.setAutoRaise(True)
        return btn

    def _setup_ui(self) -> None:
        """Setup the main UI components and layout."""
        self.setWindowTitle("File Explorer")
        self.tree_controller.setup_tree_properties()

        toolbar, row = self.layout_manager.create_toolbar_row()
        for btn in (self.btn_back, self.btn_forward, self.btn_up, self.btn_home, self.btn_refresh):
            row.addWidget(btn)
        row.addWidget(self.path_edit, 1)
        row.addWidget(self.search_edit)

        listing, listing_layout = self.layout_manager.create_section()
        listing_layout.addWidget(self.tree)

        central = self.layout_manager.setup_main_layout(
            toolbar, self.favorites_list, listing, self.operations_panel
        )
        self.setCentralWidget(central)
        self.layout_manager.setup_initial_window_size()

        self.menu_controller.setup_menus()
        self.context_menu_handler.setup_context_menu()
        self._refresh_favorites()
        self._update_navigation_actions()
        self.menu_controller.enable_action("paste", False)

    def _connect_signals(self) -> None:
        """Connect all signal/slot relationships."""
        handlers = {
            "new_folder": self.file_operations.create_folder,
            "new_file": self.file_operations.create_file,
            "compress": lambda: self.file_operations.compress_items(self._selected()),
            "properties": self._show_selected_properties,
            "copy": lambda: self.file_operations.copy_items(self._selected()),
            "cut": lambda: self.file_operations.cut_items(self._selected()),
            "paste": self.file_operations.paste_items,
            "rename": self._rename_selected,
            "delete": lambda: self.file_operations.delete_items(self._selected()),
            "find": self._focus_search,
            "back": self.go_back,
            "forward": self.go_forward,
            "up": self.go_up,
            "home": self.go_home,
            "refresh": self.refresh,
            "add_favorite": self.add_current_to_favorites,
            "remove_favorite": self.remove_current_from_favorites,
            "cleanup_favorites": self.cleanup_favorites,
            "open_latest_log": open_latest_log,
            "open_log_directory": open_log_directory,
            "exit": self.close,
        }
        self.menu_controller.connect_actions(handlers)

        self.btn_back.clicked.connect(self.go_back)
        self.btn_forward.clicked.connect(self.go_forward)
        self.btn_up.clicked.connect(self.go_up)
        self.btn_home.clicked.connect(self.go_home)
        self.btn_refresh.clicked.connect(self.refresh)
        self.path_edit.returnPressed.connect(lambda: self.open_path(self.path_edit.text().strip()))
        self.search_edit.textChanged.connect(self._on_search_changed)

        self.tree.doubleClicked.connect(self._on_tree_double_clicked)
        self.tree_controller.setup_header_behavior(self._on_header_clicked)
        self.favorites_list.itemActivated.connect(self._on_favorite_activated)

        self.operations_panel.cancelRequested.connect(self._cancel_operation)
        self.operations_panel.clearRequested.connect(self._clear_finished)

        self._bridge.listingChanged.connect(self._on_listing_changed)
        self._bridge.navigationFailed.connect(self._on_navigation_failed)
        self._bridge.operationChanged.connect(self._on_operation_changed)
        self._bridge.progressChanged.connect(self.operations_panel.on_progress)
        self._bridge.clipboardChanged.connect(self._on_clipboard_changed)

        if self._favorites is not None:
            self._favorites.subscribe(lambda _items: self._refresh_favorites())

    # Navigation

    def open_path(self, path: str) -> None:
        if path:
            self._bridge.run(self._vm.open_path(path))

    def go_back(self) -> None:
        self._bridge.run(self._vm.go_back())

    def go_forward(self) -> None:
        self._bridge.run(self._vm.go_forward())

    def go_up(self) -> None:
        self._bridge.run(self._vm.go_up())

    def go_home(self) -> None:
        self._bridge.run(self._vm.go_home())

    def refresh(self) -> None:
        self._bridge.run(self._vm.refresh())
        if self._favorites is not None:
            self._favorites.refresh_validity()

    def _on_listing_changed(self, state: ListingState) -> None:
        self._state = state
        self.tree_controller.refresh_model(list(state.items))
        self.tree_controller.show_sort_indicator(state.sort_by, state.sort_ascending)
        if state.path is not None:
            self.path_edit.setText(state.path)
            self.setWindowTitle(f"{os.path.basename(state.path) or state.path} - File Explorer")
        shown = len(state.items)
        if state.search_query:
            self.statusBar().showMessage(f"{shown} of {state.total_count} item(s)")
        else:
            self.statusBar().showMessage(f"{shown} item(s)")
        self._update_navigation_actions()

    def _on_navigation_failed(self, error: Exception) -> None:
        if self._state.path is not None:
            self.path_edit.setText(self._state.path)
        QMessageBox.warning(self, "Cannot open folder", describe_exception(error))

    def _update_navigation_actions(self) -> None:
        state = self._state
        self.btn_back.setEnabled(state.can_go_back)
        self.btn_forward.setEnabled(state.can_go_forward)
        self.btn_up.setEnabled(state.path is not None)
        self.btn_back.setToolTip("\n".join(["Back", *reversed(state.back_history)]))
        self.btn_forward.setToolTip("\n".join(["Forward", *state.forward_history]))
        for name, enabled in (
            ("back", state.can_go_back),
            ("forward", state.can_go_forward),
            ("up", state.path is not None),
        ):
            self.menu_controller.enable_action(name, enabled)

    def _on_header_clicked(self, logical_index: int) -> None:
        field = SORT_FIELD_BY_COLUMN.get(logical_index)
        if field is None:
            return
        ascending = not (self._state.sort_by == field and self._state.sort_ascending)
        self._bridge.call(self._vm.set_sort, field, ascending)

    def _on_search_changed(self, text: str) -> None:
        self._bridge.call(self._vm.set_search, text)

    def _focus_search(self) -> None:
        self.search_edit.setFocus()
        self.search_edit.selectAll()

    def _on_tree_double_clicked(self, index: QModelIndex) -> None:
        item = self.tree_controller.item_at(index)
        if item is not None:
            self.file_operations.open_item(item)

    # Operations

    def _selected(self) -> list[FileItem]:
        return self.tree_controller.get_selected_items()

    def _rename_selected(self) -> None:
        items = self._selected()
        if len(items) == 1:
            self.file_operations.rename_item(items[0])

    def _show_selected_properties(self) -> None:
        items = self._selected()
        if len(items) == 1:
            self.file_operations.show_properties(items[0])

    def _on_operation_changed(self, op: Operation) -> None:
        self.operations_panel.on_operation(op)
        label = describe_operation(op)
        if op.status is OperationStatus.COMPLETED:
            if op.item_failures:
                self.status_reporter.show_status(
                    f"{label}: {len(op.item_failures)} item(s) failed", timeout=8000
                )
            else:
                self.status_reporter.show_status(f"{label} completed")
        elif op.status is OperationStatus.FAILED and op.error_detail is not None:
            logger.warning("Operation {} failed: {}", op.id, op.error_detail.message)
            self.status_reporter.show_status(
                f"{label} failed: {op.error_detail.message}", timeout=8000
            )

    def _cancel_operation(self, op_id: str) -> None:
        def _done(outcome: Any, error: BaseException | None) -> None:
            if error is None and not outcome:
                self.status_reporter.show_status("The operation is already running")

        self._bridge.call(self._vm.queue.cancel, op_id, callback=_done)

    def _clear_finished(self) -> None:
        self._bridge.call(
            self._vm.queue.clear_terminal,
            callback=lambda _n, _err: self.operations_panel.remove_finished(),
        )

    def _on_clipboard_changed(self, content: ClipboardContent | None) -> None:
        can_paste = content is not None and bool(content.paths)
        self.file_operations.set_clipboard_state(can_paste)
        self.menu_controller.enable_action("paste", can_paste)

    # Favorites

    def add_favorite_path(self, path: str) -> None:
        if self._favorites is None:
            return
        self._favorites.add(path)
        self.status_reporter.show_status(f"Added to favorites: {path}")

    def add_current_to_favorites(self) -> None:
        if self._state.path is not None:
            self.add_favorite_path(self._state.path)

    def remove_current_from_favorites(self) -> None:
        if self._favorites is not None and self._state.path is not None:
            self._favorites.remove_by_path(self._state.path)

    def cleanup_favorites(self) -> None:
        if self._favorites is None:
            return
        self._favorites.refresh_validity()
        removed = self._favorites.cleanup_invalid()
        self.status_reporter.show_status(f"Removed {removed} missing favorite(s)")

    def _refresh_favorites(self) -> None:
        self.favorites_list.clear()
        if self._favorites is None:
            return
        for fav in self._favorites.list():
            item = QListWidgetItem(fav.name)
            item.setData(PATH_ROLE, fav.path)
            item.setData(FAV_ID_ROLE, fav.id)
            item.setToolTip(fav.path if fav.is_valid else f"{fav.path} (missing)")
            if not fav.is_valid:
                item.setForeground(Qt.gray)
            self.favorites_list.addItem(item)

    def _on_favorite_activated(self, item: QListWidgetItem) -> None:
        path = item.data(PATH_ROLE)
        if self._favorites is not None:
            self._favorites.touch(item.data(FAV_ID_ROLE))
        self.open_path(path)

    # Close

    def closeEvent(self, event) -> None:
        """Confirm exit while operations are still queued or running."""
        unfinished = self.operations_panel.unfinished_count()
        if unfinished:
            reply = QMessageBox.question(
                self,
                "Operations in progress",
                f"{unfinished} operation(s) have not finished. Exit anyway?",
                QMessageBox.Yes | QMessageBox.No,
                QMessageBox.No,
            )
            if reply != QMessageBox.Yes:
                event.ignore()
                return
        self._bridge.stop()
        self._vm.close()
        event.accept()


# Helper implementation classes


class StatusReporterImpl:
    """Implementation of StatusReporter protocol."""

    def __init__(self, main_window: QMainWindow):
        self.window = main_window

    def show_status(self, message: str, timeout: int = 3000) -> None:
        """Show status message in status bar."""
        self.window.statusBar().showMessage(message, timeout)


class ActionHandlersImpl:
    """Implementation of ActionHandlers protocol for context menu."""

    def __init__(self, file_operations: FileOperationsHandler, window: MainWindow):
        self.file_ops = file_operations
        self.window = window

    def open_item(self, item: FileItem) -> None:
        self.file_ops.open_item(item)

    def copy_items(self, items: list[FileItem]) -> None:
        self.file_ops.copy_items(items)

    def cut_items(self, items: list[FileItem]) -> None:
        self.file_ops.cut_items(items)

    def paste_items(self) -> None:
        self.file_ops.paste_items()

    def can_paste(self) -> bool:
        return self.file_ops.can_paste()

    def rename_item(self, item: FileItem) -> None:
        self.file_ops.rename_item(item)

    def delete_items(self, items: list[FileItem]) -> None:
        self.file_ops.delete_items(items)

    def compress_items(self, items: list[FileItem]) -> None:
        self.file_ops.compress_items(items)

    def add_favorite(self, item: FileItem) -> None:
        self.window.add_favorite_path(item.path)

    def show_properties(self, item: FileItem) -> None:
        self.file_ops.show_properties(item)

    def create_folder(self) -> None:
        self.file_ops.create_folder()

    def create_file(self) -> None:
        self.file_ops.create_file()
