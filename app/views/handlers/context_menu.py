"""ContextMenuHandler: Manages the listing's right-click menu."""

from __future__ import annotations

from typing import Any, Protocol

from PySide6.QtCore import QPoint, Qt
from PySide6.QtWidgets import QMenu, QTreeView

from core.models import FileItem


class ActionHandlers(Protocol):
    """Protocol for action handler callbacks."""

    def open_item(self, item: FileItem) -> None:
        """Open a folder in the listing or a file with its default application."""
        ...

    def copy_items(self, items: list[FileItem]) -> None: ...

    def cut_items(self, items: list[FileItem]) -> None: ...

    def paste_items(self) -> None: ...

    def can_paste(self) -> bool: ...

    def rename_item(self, item: FileItem) -> None: ...

    def delete_items(self, items: list[FileItem]) -> None: ...

    def compress_items(self, items: list[FileItem]) -> None: ...

    def add_favorite(self, item: FileItem) -> None: ...

    def show_properties(self, item: FileItem) -> None: ...

    def create_folder(self) -> None: ...

    def create_file(self) -> None: ...


class SelectionProvider(Protocol):
    """Protocol for the selected-items provider."""

    def get_selected_items(self) -> list[FileItem]:
        """Get currently selected items."""
        ...


class ContextMenuHandler:
    """Builds a context menu that depends on what is selected.

    Right-clicking empty space offers creation and paste; a single item adds
    open/rename/properties; several items get only the bulk actions.
    """

    def __init__(
        self,
        tree_view: QTreeView,
        selection_provider: SelectionProvider,
        action_handlers: ActionHandlers,
        parent_widget: Any,
    ) -> None:
        """Initialize with tree view and action handlers.

        Args:
            tree_view: The QTreeView to manage context menus for
            selection_provider: Provider for getting selected items
            action_handlers: Handler for context menu actions
            parent_widget: Parent widget for menu creation
        """
        self.tree = tree_view
        self.selection = selection_provider
        self.handlers = action_handlers
        self.parent = parent_widget

    def setup_context_menu(self) -> None:
        """Setup context menu policy and connect signals."""
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._on_context_menu)

    def _on_context_menu(self, point: QPoint) -> None:
        menu = QMenu(self.parent)
        index = self.tree.indexAt(point)
        selected = self.selection.get_selected_items() if index.isValid() else []

        if not selected:
            self._create_background_menu(menu)
        elif len(selected) == 1:
            self._create_single_selection_menu(menu, selected[0])
        else:
            self._create_multi_selection_menu(menu, selected)

        menu.exec(self.tree.viewport().mapToGlobal(point))

    def _create_background_menu(self, menu: QMenu) -> None:
        menu.addAction("New Folder").triggered.connect(lambda: self.handlers.create_folder())
        menu.addAction("New File…").triggered.connect(lambda: self.handlers.create_file())
        menu.addSeparator()
        self._add_paste(menu)

    def _create_single_selection_menu(self, menu: QMenu, item: FileItem) -> None:
        menu.addAction("Open").triggered.connect(lambda: self.handlers.open_item(item))
        menu.addSeparator()
        self._add_clipboard_actions(menu, [item])
        menu.addSeparator()
        menu.addAction("Rename…").triggered.connect(lambda: self.handlers.rename_item(item))
        menu.addAction("Delete…").triggered.connect(lambda: self.handlers.delete_items([item]))
        menu.addAction("Compress to ZIP…").triggered.connect(
            lambda: self.handlers.compress_items([item])
        )
        if item.is_directory:
            menu.addAction("Add to Favorites").triggered.connect(
                lambda: self.handlers.add_favorite(item)
            )
        menu.addSeparator()
        menu.addAction("Properties").triggered.connect(
            lambda: self.handlers.show_properties(item)
        )

    def _create_multi_selection_menu(self, menu: QMenu, items: list[FileItem]) -> None:
        self._add_clipboard_actions(menu, items)
        menu.addSeparator()
        menu.addAction(f"Delete {len(items)} Items…").triggered.connect(
            lambda: self.handlers.delete_items(items)
        )
        menu.addAction("Compress to ZIP…").triggered.connect(
            lambda: self.handlers.compress_items(items)
        )

    def _add_clipboard_actions(self, menu: QMenu, items: list[FileItem]) -> None:
        menu.addAction("Copy").triggered.connect(lambda: self.handlers.copy_items(items))
        menu.addAction("Cut").triggered.connect(lambda: self.handlers.cut_items(items))
        self._add_paste(menu)

    def _add_paste(self, menu: QMenu) -> None:
        paste = menu.addAction("Paste")
        paste.setEnabled(self.handlers.can_paste())
        paste.triggered.connect(lambda: self.handlers.paste_items())
