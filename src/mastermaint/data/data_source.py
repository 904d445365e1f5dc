"""Persistence abstraction for the master maintenance editor.

Provides the abstract base class the core depends on and two
implementations: an in-memory mock serving sample data with simulated
latency, and a directory of per-tab CSV files.
"""

from __future__ import annotations

import asyncio
import csv
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path

from ..debug_trace import logger
from ..models.constants import Gender
from ..models.user_record import UserRecord, sort_by_id

# CSV column names, one file per tab
CSV_COLUMNS = ["id", "name", "age", "gender", "address", "is_deleted"]

# Simulated latency of the mock source, in seconds
MOCK_LOAD_DELAY = 0.5
MOCK_SAVE_DELAY = 0.8

SAMPLE_DATA: dict[str, list[UserRecord]] = {
    "tabA": [
        UserRecord(1, "山田太郎", 30, Gender.MALE, "東京都新宿区"),
        UserRecord(2, "佐藤花子", 25, Gender.FEMALE, "東京都渋谷区"),
    ],
    "tabB": [
        UserRecord(3, "鈴木一郎", 42, Gender.MALE, "大阪府大阪市"),
        UserRecord(4, "田中美咲", 35, Gender.FEMALE, "京都府京都市"),
    ],
    "tabC": [
        UserRecord(5, "高橋健太", 28, Gender.MALE, "神奈川県横浜市"),
        UserRecord(6, "伊藤由美", 33, Gender.FEMALE, "埼玉県さいたま市"),
    ],
    "tabD": [
        UserRecord(7, "渡辺隆", 45, Gender.MALE, "北海道札幌市"),
        UserRecord(8, "小林直子", 27, Gender.FEMALE, "福岡県福岡市"),
    ],
}


class Persistence(ABC):
    """Abstract base class for record stores.

    Transport, serialization format and retry policy belong to the
    implementation; the editor core only awaits these two operations.
    """

    @abstractmethod
    async def fetch_all(self) -> Mapping[str, Sequence[UserRecord]]:
        """Load every tab's records.

        Returns:
            Dict mapping tab id to that tab's records
        """

    @abstractmethod
    async def save_batch(self, tab_id: str, records: Sequence[UserRecord]) -> Sequence[UserRecord]:
        """Persist the full collection of one tab.

        Args:
            tab_id: Tab being saved
            records: Every record that should survive the save, including
                soft-deleted committed records

        Returns:
            The records as stored (the new committed collection)

        Raises:
            Exception: Any failure; the caller keeps its edits for a retry.
        """


class MockPersistence(Persistence):
    """In-memory record store with sample data and simulated latency.

    Stands in for a remote API. Every saved batch is kept in save_history so
    callers can inspect exactly what was persisted.
    """

    def __init__(
        self,
        data: Mapping[str, Sequence[UserRecord]] | None = None,
        load_delay: float = MOCK_LOAD_DELAY,
        save_delay: float = MOCK_SAVE_DELAY,
    ):
        """Initialize the mock store.

        Args:
            data: Initial records per tab (defaults to SAMPLE_DATA)
            load_delay: Seconds fetch_all() waits before answering
            save_delay: Seconds save_batch() waits before answering
        """
        source = SAMPLE_DATA if data is None else data
        self._data: dict[str, list[UserRecord]] = {
            tab_id: list(records) for tab_id, records in source.items()
        }
        self.load_delay = load_delay
        self.save_delay = save_delay
        self.save_history: list[tuple[str, list[UserRecord]]] = []

    async def fetch_all(self) -> dict[str, list[UserRecord]]:
        if self.load_delay:
            await asyncio.sleep(self.load_delay)
        return {tab_id: list(records) for tab_id, records in self._data.items()}

    async def save_batch(self, tab_id: str, records: Sequence[UserRecord]) -> list[UserRecord]:
        if self.save_delay:
            await asyncio.sleep(self.save_delay)
        stored = sort_by_id(records)
        self._data[tab_id] = stored
        self.save_history.append((tab_id, list(stored)))
        logger.info("Saved %d records for %s", len(stored), tab_id)
        return list(stored)


class CsvPersistence(Persistence):
    """Record store backed by one CSV file per tab.

    Files are named <tab_id>.csv inside a directory. A tab without a file
    loads as empty. File I/O runs in a worker thread so the event loop
    (and the UI pumping it) stays responsive.
    """

    def __init__(self, directory: str | Path, tab_ids: Sequence[str]):
        """Initialize the CSV store.

        Args:
            directory: Folder holding the per-tab CSV files
            tab_ids: Tabs to load
        """
        self._directory = Path(directory)
        self._tab_ids = list(tab_ids)

    @property
    def directory(self) -> Path:
        """Return the folder holding the CSV files."""
        return self._directory

    def path_for(self, tab_id: str) -> Path:
        """Return the CSV path for a tab."""
        return self._directory / f"{tab_id}.csv"

    def _read_tab(self, tab_id: str) -> list[UserRecord]:
        path = self.path_for(tab_id)
        if not path.exists():
            return []

        records: list[UserRecord] = []
        with open(path, newline="", encoding="utf-8") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                # Skip blank lines and rows without an id
                if not (row.get("id") or "").strip():
                    continue
                records.append(UserRecord.from_mapping(row))
        return records

    def _write_tab(self, tab_id: str, records: Sequence[UserRecord]) -> list[UserRecord]:
        self._directory.mkdir(parents=True, exist_ok=True)
        stored = sort_by_id(records)

        # Write to a temporary file first so a failed save leaves the old file intact
        path = self.path_for(tab_id)
        tmp_path = path.with_suffix(".csv.tmp")
        with open(tmp_path, "w", newline="", encoding="utf-8") as csvfile:
            # is_new is edit state, not stored data
            writer = csv.DictWriter(csvfile, fieldnames=CSV_COLUMNS, extrasaction="ignore")
            writer.writeheader()
            for record in stored:
                row = record.to_dict()
                row["is_deleted"] = "1" if record.is_deleted else "0"
                writer.writerow(row)
        tmp_path.replace(path)
        return stored

    async def fetch_all(self) -> dict[str, list[UserRecord]]:
        result: dict[str, list[UserRecord]] = {}
        for tab_id in self._tab_ids:
            result[tab_id] = await asyncio.to_thread(self._read_tab, tab_id)
        return result

    async def save_batch(self, tab_id: str, records: Sequence[UserRecord]) -> list[UserRecord]:
        stored = await asyncio.to_thread(self._write_tab, tab_id, list(records))
        logger.info("Wrote %d records to %s", len(stored), self.path_for(tab_id))
        return stored
