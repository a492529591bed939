"""FileOperationsHandler: Dialog-driven file actions routed to the queue."""

from __future__ import annotations

import os
from typing import Any, Protocol

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QDialog, QInputDialog, QLineEdit, QMessageBox
from loguru import logger

from app.views.async_bridge import AsyncBridge
from app.views.constants import describe_exception
from app.views.dialogs.delete_confirm_dialog import DeleteConfirmDialog
from core.models import FileItem, ItemProperties
from infrastructure.logging import open_path_in_system
from infrastructure.utils import format_datetime, format_size


class StatusReporter(Protocol):
    """Protocol for status reporting callback."""

    def show_status(self, message: str, timeout: int = 3000) -> None:
        """Show status message."""
        ...


class FileOperationsHandler:
    """Turns user actions into queued operations.

    Prompts (names, confirmations) run here in the GUI thread; the actual
    submission is forwarded to the view-model on the loop thread. Submission
    errors such as an invalid name come back through the bridge callback.
    """

    def __init__(
        self,
        bridge: AsyncBridge,
        settings: Any,
        parent_widget: QObject,
        status_reporter: StatusReporter,
    ) -> None:
        """Initialize with required services and callbacks.

        Args:
            bridge: Bridge to the view-model's event loop
            settings: Settings instance for configuration
            parent_widget: Parent widget for dialogs
            status_reporter: Callback for status messages
        """
        self.bridge = bridge
        self.vm = bridge.vm
        self.settings = settings
        self.parent = parent_widget
        self.status_reporter = status_reporter
        self._can_paste = False

    def _setting(self, key: str, default: Any) -> Any:
        if self.settings is None:
            return default
        return self.settings.get(key, default)

    def _submit(self, label: str, fn, *args: Any) -> None:
        def _done(op_id: Any, error: BaseException | None) -> None:
            if error is not None:
                logger.warning("{} rejected: {}", label, error)
                QMessageBox.warning(self.parent, label, describe_exception(error))
                return
            if op_id:
                self.status_reporter.show_status(f"{label} queued")

        self.bridge.call(fn, *args, callback=_done)

    # Navigation

    def open_item(self, item: FileItem) -> None:
        if item.is_directory:
            self.bridge.run(self.vm.open_path(item.path))
        else:
            open_path_in_system(item.path)

    # Clipboard

    def set_clipboard_state(self, can_paste: bool) -> None:
        self._can_paste = can_paste

    def can_paste(self) -> bool:
        return self._can_paste

    def copy_items(self, items: list[FileItem]) -> None:
        if items:
            self.bridge.call(self.vm.clipboard.copy, [it.path for it in items])
            self.status_reporter.show_status(f"Copied {len(items)} item(s)")

    def cut_items(self, items: list[FileItem]) -> None:
        if items:
            self.bridge.call(self.vm.clipboard.cut, [it.path for it in items])
            self.status_reporter.show_status(f"Cut {len(items)} item(s)")

    def paste_items(self) -> None:
        self._submit("Paste", self.vm.paste)

    # Mutations

    def delete_items(self, items: list[FileItem]) -> None:
        if not items:
            QMessageBox.information(self.parent, "Delete", "No items selected.")
            return
        if bool(self._setting("behavior.confirm_delete", True)):
            use_bin = bool(self._setting("behavior.use_recycle_bin", True))
            dlg = DeleteConfirmDialog(items, use_bin, self.parent)
            if dlg.exec() != QDialog.Accepted:
                return
        logger.info("Deleting {} item(s)", len(items))
        self._submit("Delete", self.vm.delete, [it.path for it in items])

    def rename_item(self, item: FileItem) -> None:
        new_name, ok = QInputDialog.getText(
            self.parent, "Rename", "New name:", QLineEdit.Normal, item.name
        )
        new_name = new_name.strip()
        if not ok or not new_name or new_name == item.name:
            return
        self._submit("Rename", self.vm.rename, item.path, new_name)

    def create_folder(self) -> None:
        name, ok = QInputDialog.getText(
            self.parent, "New Folder", "Folder name:", QLineEdit.Normal, "New Folder"
        )
        if ok and name.strip():
            self._submit("New folder", self.vm.create_folder, name.strip())

    def create_file(self) -> None:
        name, ok = QInputDialog.getText(
            self.parent, "New File", "File name:", QLineEdit.Normal, "New File.txt"
        )
        if ok and name.strip():
            self._submit("New file", self.vm.create_file, name.strip())

    def compress_items(self, items: list[FileItem]) -> None:
        if not items:
            return
        default = f"{os.path.splitext(items[0].name)[0]}.zip" if len(items) == 1 else "Archive.zip"
        name, ok = QInputDialog.getText(
            self.parent, "Compress", "Archive name:", QLineEdit.Normal, default
        )
        if ok and name.strip():
            self._submit("Compress", self.vm.compress, [it.path for it in items], name.strip())

    # Properties

    def show_properties(self, item: FileItem) -> None:
        def _done(props: ItemProperties | None, error: BaseException | None) -> None:
            if error is not None:
                QMessageBox.warning(self.parent, "Properties", describe_exception(error))
                return
            kind = "Folder" if props.is_directory else item.type_label
            lines = [
                f"Name: {props.name}",
                f"Type: {kind}",
                f"Location: {props.parent_path}",
                f"Size: {format_size(props.size)} ({props.size:,} bytes)",
                f"Created: {format_datetime(props.created)}",
                f"Modified: {format_datetime(props.modified)}",
                f"Accessed: {format_datetime(props.accessed)}",
            ]
            QMessageBox.information(self.parent, "Properties", "\n".join(lines))

        self.bridge.run(self.vm.properties(item.path), callback=_done)
