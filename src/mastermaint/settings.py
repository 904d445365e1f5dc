import argparse
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .data.data_source import MOCK_LOAD_DELAY, MOCK_SAVE_DELAY
from .models.constants import APP_BOOTSTRAP_ID, DEFAULT_TABS, TabDefinition


@dataclass
class EditorSettings:
    """Application settings and configuration."""

    tabs: tuple[TabDefinition, ...] = DEFAULT_TABS
    min_bootstrap_id: int = APP_BOOTSTRAP_ID
    load_delay: float = MOCK_LOAD_DELAY
    save_delay: float = MOCK_SAVE_DELAY
    data_dir: Path | None = None
    debug: bool = False
    window_size: str = field(default="900x520")

    @property
    def uses_mock_data(self) -> bool:
        """True when no data folder was given and the sample data is served."""
        return self.data_dir is None

    @classmethod
    def from_args(cls, argv: Sequence[str] | None = None) -> "EditorSettings":
        """Build settings from command line arguments.

        Args:
            argv: Arguments without the program name (defaults to sys.argv[1:])
        """
        parser = argparse.ArgumentParser(
            prog="mastermaint", description="Master maintenance record editor"
        )
        parser.add_argument(
            "--data-dir",
            type=Path,
            default=None,
            help="Folder of per-tab CSV files (omit to edit the built-in sample data)",
        )
        parser.add_argument(
            "--load-delay", type=float, default=MOCK_LOAD_DELAY, help="Sample data load delay (s)"
        )
        parser.add_argument(
            "--save-delay", type=float, default=MOCK_SAVE_DELAY, help="Sample data save delay (s)"
        )
        parser.add_argument("--debug", action="store_true", help="Log debug output to the console")
        args = parser.parse_args(argv)

        if args.load_delay < 0 or args.save_delay < 0:
            parser.error("delays must not be negative")

        return cls(
            data_dir=args.data_dir,
            load_delay=args.load_delay,
            save_delay=args.save_delay,
            debug=args.debug,
        )
