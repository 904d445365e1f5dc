import sys
import tkinter as tk
from tkinter import font, ttk

from .data.data_source import CsvPersistence, MockPersistence, Persistence
from .data.id_allocator import IdAllocator
from .debug_trace import logger, setup_debug_logging
from .models.constants import UNSAVED_CLOSE_MESSAGE, UNSAVED_CLOSE_TITLE
from .services.navigation_guard import ConfirmResult
from .services.tab_session import TabSessionController
from .settings import EditorSettings
from .views.async_pump import AsyncPump
from .views.dialogs import MessageBoxConfirmation, MessageBoxNotifier
from .views.master_editor import MasterEditorWindow


def get_version():
    """Get version from package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("mastermaint")
    except PackageNotFoundError:
        return "Development"


def build_persistence(settings: EditorSettings) -> Persistence:
    """Pick the data source selected by the settings."""
    if settings.uses_mock_data:
        logger.info("Using built-in sample data")
        return MockPersistence(load_delay=settings.load_delay, save_delay=settings.save_delay)
    logger.info("Using CSV files in %s", settings.data_dir)
    return CsvPersistence(settings.data_dir, [tab.id for tab in settings.tabs])


class MasterMaintApp:
    """Master maintenance application window."""

    def _setup_styles(self):
        default_font = font.nametofont("TkDefaultFont")
        style = ttk.Style(self.root)
        style.configure(".", font=default_font)

    def __init__(self, settings: EditorSettings | None = None):
        self.settings = settings or EditorSettings()

        # Create main window
        self.root = tk.Tk()
        self.root.title(f"マスタメンテナンス ({get_version()})")
        self.root.geometry(self.settings.window_size)
        self._setup_styles()

        self.confirmation = MessageBoxConfirmation(self.root)
        self.controller = TabSessionController(
            build_persistence(self.settings),
            self.confirmation,
            notifier=MessageBoxNotifier(self.root),
            tabs=self.settings.tabs,
            id_allocator=IdAllocator(self.settings.min_bootstrap_id),
        )
        self.pump = AsyncPump(self.root)

        self.window = MasterEditorWindow(self.root, self.controller, self.pump)
        self.window.pack(fill=tk.BOTH, expand=True)

        self.root.protocol("WM_DELETE_WINDOW", self.on_closing)

    def on_closing(self):
        """Handle application shutdown, asking first when edits are unsaved."""
        if self.controller.has_unsaved_changes():
            answer = self.confirmation.ask(UNSAVED_CLOSE_TITLE, UNSAVED_CLOSE_MESSAGE)
            if answer is not ConfirmResult.CONFIRMED:
                return
            logger.info("Closing with unsaved changes in %s", ", ".join(self.controller.dirty_tabs()))

        self.pump.stop()
        self.root.destroy()

    def run(self):
        """Run the application."""
        self.pump.start()
        self.pump.submit(self.controller.load_all())
        self.root.mainloop()


def main(argv=None) -> None:
    """Entry point for the application."""
    settings = EditorSettings.from_args(argv)
    setup_debug_logging(settings.debug)
    app = MasterMaintApp(settings)
    app.run()


def main_dev() -> None:
    """Entry point for development mode with debug logging enabled."""
    argv = sys.argv[1:]
    if "--debug" not in argv:
        argv.append("--debug")
    main(argv)


if __name__ == "__main__":
    main()  # Call the main function when run directly
