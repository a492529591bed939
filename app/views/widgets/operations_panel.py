"""Panel listing queued, running and finished file operations."""

from __future__ import annotations

import os

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from app.views.constants import OPS_HEADERS, OPS_ID_ROLE, STATUS_TEXT, describe_error
from core.models import Operation, OperationKind, OperationStatus, ProgressEvent
from infrastructure.utils import format_progress

_KIND_TEXT: dict[OperationKind, str] = {
    OperationKind.COPY: "Copy",
    OperationKind.MOVE: "Move",
    OperationKind.DELETE: "Delete",
    OperationKind.CREATE_FOLDER: "New folder",
    OperationKind.CREATE_FILE: "New file",
    OperationKind.RENAME: "Rename",
    OperationKind.COMPRESS: "Compress",
}


def describe_operation(op: Operation) -> str:
    """Short label like "Delete 3 items" or "Rename a.txt → b.txt"."""
    verb = _KIND_TEXT.get(op.kind, str(op.kind.value))
    if op.kind in (OperationKind.CREATE_FOLDER, OperationKind.CREATE_FILE):
        return f"{verb} {op.new_name}"
    if op.kind is OperationKind.RENAME and op.source_paths:
        return f"{verb} {os.path.basename(op.source_paths[0])} → {op.new_name}"
    if op.kind is OperationKind.COMPRESS:
        return f"{verb} {len(op.source_paths)} item(s) → {op.new_name}"
    if len(op.source_paths) == 1:
        return f"{verb} {os.path.basename(op.source_paths[0])}"
    return f"{verb} {len(op.source_paths)} items"


class OperationsPanel(QWidget):
    """Shows one row per operation, updated from lifecycle and progress events.

    Emits `cancelRequested(op_id)` and `clearRequested()`; the window
    forwards them to the queue.
    """

    cancelRequested = Signal(str)
    clearRequested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._rows: dict[str, QTreeWidgetItem] = {}
        self._status: dict[str, OperationStatus] = {}

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        header = QHBoxLayout()
        self._summary = QLabel("No operations")
        self.btn_cancel = QPushButton("Cancel")
        self.btn_clear = QPushButton("Clear Finished")
        header.addWidget(self._summary)
        header.addStretch(1)
        header.addWidget(self.btn_cancel)
        header.addWidget(self.btn_clear)
        root.addLayout(header)

        self.tree = QTreeWidget()
        self.tree.setHeaderLabels(OPS_HEADERS)
        self.tree.setRootIsDecorated(False)
        self.tree.setUniformRowHeights(True)
        root.addWidget(self.tree)

        self.btn_cancel.clicked.connect(self._on_cancel_clicked)
        self.btn_clear.clicked.connect(self.clearRequested.emit)
        self.tree.itemSelectionChanged.connect(self._update_buttons)
        self._update_buttons()

    def on_operation(self, op: Operation) -> None:
        row = self._rows.get(op.id)
        if row is None:
            row = QTreeWidgetItem([describe_operation(op), "", "", ""])
            row.setData(0, OPS_ID_ROLE, op.id)
            self.tree.insertTopLevelItem(0, row)
            self._rows[op.id] = row
        self._status[op.id] = op.status
        row.setText(1, STATUS_TEXT.get(op.status.value, op.status.value))
        row.setText(2, format_progress(op.progress_percent))
        details = ""
        if op.error_detail is not None:
            details = describe_error(op.error_detail.error_kind, op.error_detail.message)
            row.setForeground(1, Qt.red)
        elif op.item_failures:
            details = f"{len(op.item_failures)} item(s) failed"
            row.setForeground(1, Qt.darkYellow)
        row.setText(3, details.replace("\n\n", " "))
        row.setToolTip(3, details)
        self._update_summary()
        self._update_buttons()

    def on_progress(self, event: ProgressEvent) -> None:
        row = self._rows.get(event.operation_id)
        if row is None:
            return
        row.setText(2, format_progress(event.progress_percent))
        text = f"{event.items_processed}/{event.items_total}"
        if event.current_item:
            text = f"{text}  {os.path.basename(event.current_item)}"
        row.setText(3, text)

    def remove_finished(self) -> None:
        for op_id, status in list(self._status.items()):
            if status.is_terminal:
                row = self._rows.pop(op_id)
                self.tree.takeTopLevelItem(self.tree.indexOfTopLevelItem(row))
                del self._status[op_id]
        self._update_summary()
        self._update_buttons()

    def unfinished_count(self) -> int:
        return sum(1 for s in self._status.values() if not s.is_terminal)

    def _selected_id(self) -> str | None:
        items = self.tree.selectedItems()
        if not items:
            return None
        return items[0].data(0, OPS_ID_ROLE)

    def _on_cancel_clicked(self) -> None:
        op_id = self._selected_id()
        if op_id:
            self.cancelRequested.emit(op_id)

    def _update_buttons(self) -> None:
        op_id = self._selected_id()
        self.btn_cancel.setEnabled(
            op_id is not None and self._status.get(op_id) is OperationStatus.PENDING
        )
        self.btn_clear.setEnabled(any(s.is_terminal for s in self._status.values()))

    def _update_summary(self) -> None:
        running = sum(1 for s in self._status.values() if s is OperationStatus.IN_PROGRESS)
        pending = sum(1 for s in self._status.values() if s is OperationStatus.PENDING)
        if not self._status:
            self._summary.setText("No operations")
        else:
            self._summary.setText(f"{running} running, {pending} waiting")
