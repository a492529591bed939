"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenuBar

# (action name, label, shortcut) per menu; None marks a separator
_MENUS: list[tuple[str, list[tuple[str, str, QKeySequence | str | None] | None]]] = [
    (
        "File",
        [
            ("new_folder", "New Folder", "Ctrl+Shift+N"),
            ("new_file", "New File…", None),
            None,
            ("compress", "Compress to ZIP…", None),
            ("properties", "Properties", "Alt+Return"),
            None,
            ("exit", "Exit", QKeySequence.Quit),
        ],
    ),
    (
        "Edit",
        [
            ("copy", "Copy", QKeySequence.Copy),
            ("cut", "Cut", QKeySequence.Cut),
            ("paste", "Paste", QKeySequence.Paste),
            None,
            ("rename", "Rename…", "F2"),
            ("delete", "Delete…", QKeySequence.Delete),
            None,
            ("find", "Find", QKeySequence.Find),
        ],
    ),
    (
        "Go",
        [
            ("back", "Back", "Alt+Left"),
            ("forward", "Forward", "Alt+Right"),
            ("up", "Up", "Alt+Up"),
            ("home", "Home", "Alt+Home"),
            None,
            ("refresh", "Refresh", QKeySequence.Refresh),
        ],
    ),
    (
        "Favorites",
        [
            ("add_favorite", "Add Current Folder", "Ctrl+D"),
            ("remove_favorite", "Remove Current Folder", None),
            None,
            ("cleanup_favorites", "Remove Missing Folders", None),
        ],
    ),
    (
        "Log",
        [
            ("open_latest_log", "Open Latest Log", None),
            None,
            ("open_log_directory", "Open Log Directory", None),
        ],
    ),
]


class MenuController:
    """Manages main window menu creation and action connections.

    Actions are addressed by name (e.g. "paste", "back") so the window can
    connect handlers and toggle availability without holding QAction
    references itself.
    """

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to create menus for
        """
        self.window = main_window
        self.actions: dict[str, QAction] = {}

    def setup_menus(self) -> dict[str, QAction]:
        """Create all menus and return action references.

        Returns:
            Dictionary mapping action names to QAction instances
        """
        menubar = QMenuBar(self.window)
        for title, entries in _MENUS:
            menu = menubar.addMenu(title)
            for entry in entries:
                if entry is None:
                    menu.addSeparator()
                    continue
                name, label, shortcut = entry
                action = menu.addAction(label)
                if shortcut is not None:
                    action.setShortcut(QKeySequence(shortcut))
                self.actions[name] = action
        self.window.setMenuBar(menubar)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler methods.

        Args:
            handlers: Dictionary mapping action names to handler callables
        """
        for name, action in self.actions.items():
            handler = handlers.get(name)
            if handler is not None:
                action.triggered.connect(handler)
            elif name == "exit":
                action.triggered.connect(self.window.close)

    def get_action(self, name: str) -> QAction | None:
        return self.actions.get(name)

    def enable_action(self, name: str, enabled: bool = True) -> None:
        """Enable or disable a specific action.

        Args:
            name: Action name
            enabled: Whether to enable the action
        """
        action = self.actions.get(name)
        if action:
            action.setEnabled(enabled)
