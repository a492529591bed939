"""TreeController: Manages the listing view and its model."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QModelIndex, Qt
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTreeView

from app.views.constants import (
    COL_NAME,
    NUM_COLUMNS,
    PATH_ROLE,
    SORT_FIELD_BY_COLUMN,
)
from app.views.tree_model_builder import build_model
from core.models import FileItem


class TreeController:
    """Manages the listing's model, selection and sort indicator.

    Sorting itself happens in the view-model; the header only reports which
    column was clicked and shows the current order.
    """

    def __init__(self, tree_view: QTreeView) -> None:
        """Initialize with a QTreeView instance.

        Args:
            tree_view: The QTreeView widget to manage
        """
        self.tree = tree_view
        self._model = None
        self._items_by_path: dict[str, FileItem] = {}

    def setup_tree_properties(self) -> None:
        """Configure tree view properties and behavior."""
        self.tree.setUniformRowHeights(True)
        self.tree.setRootIsDecorated(False)
        self.tree.setItemsExpandable(False)
        self.tree.setSortingEnabled(False)
        self.tree.setSelectionMode(QAbstractItemView.ExtendedSelection)
        self.tree.setEditTriggers(QAbstractItemView.NoEditTriggers)

    def setup_header_behavior(self, header_click_handler: Callable[[int], None]) -> None:
        """Setup header interactions and connect click handler.

        Args:
            header_click_handler: Callback for header clicks with signature (int) -> None
        """
        header = self.tree.header()
        header.setStretchLastSection(False)
        header.setSectionsClickable(True)
        header.setSortIndicatorShown(True)
        header.setSectionResizeMode(QHeaderView.Interactive)
        header.sectionClicked.connect(header_click_handler)

    def refresh_model(self, items: list[FileItem]) -> None:
        """Replace the model with `items`, keeping their order."""
        first_fill = self._model is None
        self._model = build_model(items)
        self._items_by_path = {it.path: it for it in items}
        self.tree.setModel(self._model)

        if first_fill:
            header = self.tree.header()
            for i in range(NUM_COLUMNS):
                header.setSectionResizeMode(i, QHeaderView.ResizeToContents)
            self.tree.doItemsLayout()
            for i in range(NUM_COLUMNS):
                header.setSectionResizeMode(i, QHeaderView.Interactive)
            header.setSectionResizeMode(COL_NAME, QHeaderView.Stretch)

    def show_sort_indicator(self, sort_by: str, ascending: bool) -> None:
        for column, field in SORT_FIELD_BY_COLUMN.items():
            if field == sort_by:
                order = Qt.AscendingOrder if ascending else Qt.DescendingOrder
                self.tree.header().setSortIndicator(column, order)
                return

    def item_at(self, index: QModelIndex) -> FileItem | None:
        if not index.isValid() or self._model is None:
            return None
        name_index = self._model.index(index.row(), COL_NAME)
        return self._items_by_path.get(self._model.data(name_index, PATH_ROLE))

    def get_selected_items(self) -> list[FileItem]:
        """Currently selected rows, in listing order."""
        selection_model = self.tree.selectionModel()
        if selection_model is None:
            return []
        rows = sorted(selection_model.selectedRows(), key=lambda idx: idx.row())
        items = [self.item_at(idx) for idx in rows]
        return [it for it in items if it is not None]

    def get_selected_paths(self) -> list[str]:
        return [it.path for it in self.get_selected_items()]
