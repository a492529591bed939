from __future__ import annotations

import os

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
)

from core.models import FileItem


class DeleteConfirmDialog(QDialog):
    """Lists what is about to be deleted.

    Permanent deletes (recycle bin off) that include a folder require an
    extra confirmation checkbox.
    """

    def __init__(self, items: list[FileItem], use_recycle_bin: bool, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Confirm Delete")

        root = QVBoxLayout(self)

        folders = sum(1 for it in items if it.is_directory)
        files = len(items) - folders
        where = "to the Recycle Bin" if use_recycle_bin else "permanently"
        title = QLabel(f"Delete {len(items)} item(s) {where}?")
        root.addWidget(title)
        root.addWidget(QLabel(f"Folders: {folders}    Files: {files}"))

        lst = QListWidget()
        for it in items:
            lst.addItem(QListWidgetItem(os.path.basename(it.path) or it.path))
        root.addWidget(lst)

        needs_ack = not use_recycle_bin and folders > 0
        self._confirm_box = QCheckBox("Folders and their contents cannot be restored")
        if needs_ack:
            warn = QLabel("Warning: folders will be removed with everything inside them.")
            warn.setStyleSheet("color: #b00020; font-weight: bold;")
            root.addWidget(warn)
            root.addWidget(self._confirm_box)
        else:
            self._confirm_box.setChecked(True)

        btns = QHBoxLayout()
        self.btn_ok = QPushButton("Delete")
        self.btn_cancel = QPushButton("Cancel")
        btns.addWidget(self.btn_ok)
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        root.addLayout(btns)

        self.btn_ok.clicked.connect(self._on_accept)
        self.btn_cancel.clicked.connect(self.reject)

    def _on_accept(self) -> None:
        if not self._confirm_box.isChecked():
            return
        self.accept()
