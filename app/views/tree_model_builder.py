from __future__ import annotations

from collections.abc import Iterable

from PySide6.QtCore import Qt
from PySide6.QtGui import QStandardItem, QStandardItemModel
from PySide6.QtWidgets import QApplication, QStyle

from app.views.constants import (
    COL_NAME,
    COL_SIZE,
    HEADERS,
    IS_DIR_ROLE,
    PATH_ROLE,
)
from core.models import FileItem
from infrastructure.utils import format_datetime, format_size


def build_model(items: Iterable[FileItem]) -> QStandardItemModel:
    """Builds the listing model.

    Rows keep the order of `items`; sorting is done by the view-model so
    folders stay ahead of files whichever column is chosen.
    """
    model = QStandardItemModel()
    model.setHorizontalHeaderLabels(HEADERS)

    style = QApplication.style()
    dir_icon = style.standardIcon(QStyle.SP_DirIcon) if style is not None else None
    file_icon = style.standardIcon(QStyle.SP_FileIcon) if style is not None else None

    for it in items:
        row = [
            QStandardItem(it.name),
            QStandardItem("" if it.is_directory else format_size(it.size)),
            QStandardItem(it.type_label),
            QStandardItem(format_datetime(it.last_modified)),
        ]
        row[COL_NAME].setData(it.path, PATH_ROLE)
        row[COL_NAME].setData(it.is_directory, IS_DIR_ROLE)
        icon = dir_icon if it.is_directory else file_icon
        if icon is not None:
            row[COL_NAME].setIcon(icon)
        row[COL_SIZE].setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
        for cell in row:
            cell.setEditable(False)
        model.appendRow(row)

    return model
