"""LayoutManager: Manages main window layout and splitter behavior."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QMainWindow,
    QSplitter,
    QVBoxLayout,
    QWidget,
)


class LayoutManager:
    """Manages main window layout and splitter behavior.

    The window is a toolbar row above a horizontal splitter (favorites
    sidebar | listing), with the operations panel below in a vertical
    splitter.
    """

    # Layout constants
    SIDEBAR_STRETCH_FACTOR = 2
    LISTING_STRETCH_FACTOR = 8
    LISTING_HEIGHT_FACTOR = 4
    OPERATIONS_HEIGHT_FACTOR = 1
    MIN_SIDEBAR_WIDTH = 160
    WINDOW_SIZE_RATIO = 0.6

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to manage layout for
        """
        self.window = main_window
        self.splitter: QSplitter | None = None
        self.vertical_splitter: QSplitter | None = None

    def setup_main_layout(
        self,
        toolbar: QWidget,
        sidebar: QWidget,
        listing: QWidget,
        operations: QWidget,
    ) -> QWidget:
        """Create the central widget.

        Args:
            toolbar: Navigation row (buttons, path and search fields)
            sidebar: Favorites list
            listing: Widget containing the tree view
            operations: Operations panel

        Returns:
            Central widget configured with the layout
        """
        central = QWidget(self.window)
        root = QVBoxLayout(central)
        root.addWidget(toolbar)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(sidebar)
        self.splitter.addWidget(listing)
        self.splitter.setStretchFactor(0, self.SIDEBAR_STRETCH_FACTOR)
        self.splitter.setStretchFactor(1, self.LISTING_STRETCH_FACTOR)
        sidebar.setMinimumWidth(self.MIN_SIDEBAR_WIDTH)

        self.vertical_splitter = QSplitter(Qt.Vertical)
        self.vertical_splitter.addWidget(self.splitter)
        self.vertical_splitter.addWidget(operations)
        self.vertical_splitter.setStretchFactor(0, self.LISTING_HEIGHT_FACTOR)
        self.vertical_splitter.setStretchFactor(1, self.OPERATIONS_HEIGHT_FACTOR)

        root.addWidget(self.vertical_splitter)
        return central

    def create_toolbar_row(self) -> tuple[QWidget, QHBoxLayout]:
        widget = QWidget()
        row = QHBoxLayout(widget)
        row.setContentsMargins(0, 0, 0, 0)
        return widget, row

    def create_section(self) -> tuple[QWidget, QVBoxLayout]:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(0, 0, 0, 0)
        return widget, layout

    def setup_initial_window_size(self) -> None:
        """Setup initial window size based on screen dimensions."""
        screen = QApplication.primaryScreen()
        if screen is not None:
            rect = screen.availableGeometry()
            width = int(rect.width() * self.WINDOW_SIZE_RATIO)
            height = int(rect.height() * self.WINDOW_SIZE_RATIO)
            self.window.resize(width, height)
