from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import ContextManager, Dict, Iterator, Protocol

import pandas as pd

from .config import PersistTarget, db_path, local_storage_path, persist_target
from .errors import StorageError
from .logger import logger
from .models import BodyMeasurement, ExerciseDefinition, Goal, Profile, WorkoutEntry, parse
from .utils import DEFAULT_EXERCISES, TABLE_KEYS, TABLES

DATETIME_COLUMNS = ("timestamp", "created_at", "updated_at", "measurement_date")

# One lock per local storage file, shared by every repo opened on it.
_FILE_LOCKS: Dict[str, ContextManager] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _file_lock(path: Path) -> ContextManager:
    key = str(path.resolve())
    with _FILE_LOCKS_GUARD:
        return _FILE_LOCKS.setdefault(key, threading.RLock())


class Repo(Protocol):
    lock: ContextManager

    def open(self) -> "Repo": ...
    def close(self) -> None: ...
    def read_df(self, tab: str) -> pd.DataFrame: ...
    def read_records(self, tab: str) -> list[dict]: ...
    def get(self, tab: str, key: str) -> dict | None: ...
    def append(self, tab: str, payload: dict) -> str: ...
    def update(self, tab: str, key: str, payload: dict) -> bool: ...
    def delete(self, tab: str, key: str) -> bool: ...


def _columns(tab: str) -> list[str]:
    try:
        return TABLES[tab]
    except KeyError:
        raise ValueError(f"Unknown table {tab!r}") from None


def _to_storable(v: object) -> object:
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return v


def _frame(tab: str, rows: list[dict]) -> pd.DataFrame:
    """Build a typed DataFrame for ``tab``; empty tables keep their schema."""
    cols = _columns(tab)
    if not rows:
        return pd.DataFrame(columns=cols)
    df = pd.DataFrame(rows, columns=cols)
    for c in DATETIME_COLUMNS:
        if c in df.columns:
            df[c] = pd.to_datetime(df[c], errors="coerce", format="ISO8601")
    if "is_completed" in df.columns:
        df["is_completed"] = df["is_completed"].fillna(False).astype(bool)
    return df


class SQLiteRepo:
    """Server-mode store: one SQLite file, one table per record type."""

    def __init__(self, path: str | None = None):
        self.path = path or db_path()
        self._con: sqlite3.Connection | None = None
        # Serializes use of the single connection; reentrant so callers can
        # hold it across several operations.
        self.lock = threading.RLock()

    def __enter__(self) -> "SQLiteRepo":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> "SQLiteRepo":
        with self.lock:
            if self._con is None:
                try:
                    self._con = sqlite3.connect(self.path, check_same_thread=False)
                except sqlite3.Error as e:
                    raise StorageError(f"Could not open database {self.path}: {e}") from e
                self._con.row_factory = sqlite3.Row
                self._init_db()
                logger.info(f"SQLiteRepo opened at {self.path}")
        return self

    def close(self) -> None:
        with self.lock:
            if self._con is not None:
                self._con.close()
                self._con = None
                logger.info(f"SQLiteRepo closed at {self.path}")

    def _conn(self) -> sqlite3.Connection:
        if self._con is None:
            raise StorageError("Database is not open")
        return self._con

    @contextmanager
    def _tx(self) -> Iterator[sqlite3.Connection]:
        with self.lock:
            con = self._conn()
            try:
                with con:
                    yield con
            except sqlite3.Error as e:
                logger.exception("SQLite operation failed")
                raise StorageError(f"Database error: {e}") from e

    def _init_db(self):
        with self._tx() as con:
            cur = con.cursor()
            cur.execute("""
                CREATE TABLE IF NOT EXISTS Workouts (
                    id TEXT PRIMARY KEY,
                    exercise_name TEXT NOT NULL,
                    duration_minutes INTEGER NOT NULL,
                    calories_burned INTEGER NOT NULL,
                    timestamp TEXT NOT NULL
                )""")
            cur.execute("""
                CREATE TABLE IF NOT EXISTS Goals (
                    id TEXT PRIMARY KEY,
                    goal_type TEXT NOT NULL,
                    target_value REAL NOT NULL,
                    current_value REAL DEFAULT 0,
                    target_date TEXT,
                    is_completed INTEGER DEFAULT 0,
                    created_at TEXT NOT NULL
                )""")
            cur.execute("""
                CREATE TABLE IF NOT EXISTS Profile (
                    id TEXT PRIMARY KEY,
                    name TEXT,
                    age INTEGER,
                    height_cm REAL,
                    initial_weight_kg REAL,
                    gender TEXT,
                    updated_at TEXT
                )""")
            cur.execute("""
                CREATE TABLE IF NOT EXISTS Exercises (
                    name TEXT PRIMARY KEY,
                    description TEXT,
                    category TEXT,
                    difficulty TEXT,
                    calories_burned_per_minute REAL,
                    muscle_groups TEXT,
                    instructions TEXT
                )""")
            cur.execute("""
                CREATE TABLE IF NOT EXISTS Measurements (
                    id TEXT PRIMARY KEY,
                    weight_kg REAL,
                    body_fat_percentage REAL,
                    chest_cm REAL,
                    waist_cm REAL,
                    hips_cm REAL,
                    measurement_date TEXT NOT NULL
                )""")

            # The exercise library is reference data: seed it once on a fresh DB.
            cur.execute("SELECT COUNT(*) FROM Exercises")
            if cur.fetchone()[0] == 0:
                cols = TABLES["Exercises"]
                cur.executemany(
                    f"INSERT INTO Exercises ({','.join(cols)}) VALUES ({','.join(['?'] * len(cols))})",
                    [tuple(ex.get(c) for c in cols) for ex in DEFAULT_EXERCISES],
                )
                logger.info(f"Seeded {len(DEFAULT_EXERCISES)} exercises")

    def _decode(self, row: sqlite3.Row) -> dict:
        rec = dict(row)
        if "is_completed" in rec:
            rec["is_completed"] = bool(rec["is_completed"])
        return rec

    def read_df(self, tab: str) -> pd.DataFrame:
        logger.debug(f"SQLite read from table: {tab}")
        return _frame(tab, self.read_records(tab))

    def read_records(self, tab: str) -> list[dict]:
        _columns(tab)
        with self._tx() as con:
            rows = con.execute(f"SELECT * FROM {tab} ORDER BY rowid").fetchall()
        logger.debug(f"SQLite read {len(rows)} rows from {tab}")
        return [self._decode(r) for r in rows]

    def get(self, tab: str, key: str) -> dict | None:
        _columns(tab)
        with self._tx() as con:
            row = con.execute(f"SELECT * FROM {tab} WHERE {TABLE_KEYS[tab]} = ?", (key,)).fetchone()
        return self._decode(row) if row is not None else None

    def append(self, tab: str, payload: dict) -> str:
        logger.debug(f"SQLite append to {tab}: {payload}")
        key_col = TABLE_KEYS[tab]
        row_key = payload.get(key_col) or str(uuid.uuid4())
        record = _validate_payload(tab, {**payload, key_col: row_key})
        cols = _columns(tab)
        placeholders = ",".join(["?"] * len(cols))
        with self._tx() as con:
            con.execute(
                f"INSERT OR REPLACE INTO {tab} ({','.join(cols)}) VALUES ({placeholders})",
                tuple(record.get(c) for c in cols),
            )
        logger.info(f"SQLite appended row {key_col}={row_key} to {tab}")
        return row_key

    def update(self, tab: str, key: str, payload: dict) -> bool:
        logger.debug(f"SQLite update {tab} key={key} with {payload}")
        key_col = TABLE_KEYS[tab]
        fields = [k for k in payload.keys() if k != key_col and k in _columns(tab)]
        if not fields:
            logger.debug("No fields provided for update; skipping")
            return self.get(tab, key) is not None
        sets = [f"{k} = ?" for k in fields]
        params = tuple(_to_storable(payload[k]) for k in fields) + (key,)
        with self._tx() as con:
            cur = con.execute(f"UPDATE {tab} SET {', '.join(sets)} WHERE {key_col} = ?", params)
        logger.info(f"SQLite updated {tab} {key_col}={key}")
        return cur.rowcount > 0

    def delete(self, tab: str, key: str) -> bool:
        logger.debug(f"SQLite delete from {tab} key={key}")
        with self._tx() as con:
            cur = con.execute(f"DELETE FROM {tab} WHERE {TABLE_KEYS[tab]} = ?", (key,))
        logger.info(f"SQLite deleted {tab} key={key}")
        return cur.rowcount > 0


class LocalStorageRepo:
    """Demo-mode store shaped like browser local storage.

    Every table is one JSON-encoded list under a versioned key. Without a
    ``path`` the document only lives in memory. With one, the file is the
    source of truth: it is re-read before every read and write and rewritten
    after every change, all under a lock shared by every repo on that file,
    so several sessions can work on the same demo data.
    """

    KEYS = {
        "Workouts": "wf_workouts_v1",
        "Profile": "wf_profile_v1",
        "Goals": "wf_goals_v1",
        "Exercises": "wf_exercises_v1",
        "Measurements": "wf_measurements_v1",
    }

    def __init__(self, path: str | None = None):
        self.path = Path(path) if path else None
        self._items: dict[str, str] | None = None
        self.lock = _file_lock(self.path) if self.path is not None else threading.RLock()

    def __enter__(self) -> "LocalStorageRepo":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> "LocalStorageRepo":
        with self.lock:
            if self._items is not None:
                return self
            self._items = self._read_file()
            if self.KEYS["Exercises"] not in self._items:
                self._save("Exercises", [dict(ex) for ex in DEFAULT_EXERCISES])
                logger.info(f"Seeded {len(DEFAULT_EXERCISES)} exercises into local storage")
        logger.info(f"LocalStorageRepo opened ({self.path or 'memory only'})")
        return self

    def close(self) -> None:
        # Every change is already on disk; nothing to flush.
        with self.lock:
            if self._items is not None:
                self._items = None
                logger.info("LocalStorageRepo closed")

    def _store(self) -> dict[str, str]:
        if self._items is None:
            raise StorageError("Local storage is not open")
        return self._items

    def _read_file(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read local storage {self.path}: {e}") from e

    def _sync(self) -> None:
        """Pick up changes other repos wrote to the same file. Caller holds the lock."""
        self._store()
        if self.path is not None:
            self._items = self._read_file()

    def _flush(self) -> None:
        if self.path is None or self._items is None:
            return
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._items, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise StorageError(f"Could not write local storage {self.path}: {e}") from e

    def _load(self, tab: str) -> list[dict]:
        _columns(tab)
        with self.lock:
            self._sync()
            raw = self._store().get(self.KEYS[tab])
        if not raw:
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt local storage entry for {tab}: {e}") from e

    def _save(self, tab: str, rows: list[dict]) -> None:
        with self.lock:
            self._store()[self.KEYS[tab]] = json.dumps(rows)
            self._flush()

    def read_df(self, tab: str) -> pd.DataFrame:
        logger.debug(f"Local storage read from table: {tab}")
        return _frame(tab, self.read_records(tab))

    def read_records(self, tab: str) -> list[dict]:
        rows = self._load(tab)
        cols = _columns(tab)
        return [{c: r.get(c) for c in cols} for r in rows]

    def get(self, tab: str, key: str) -> dict | None:
        key_col = TABLE_KEYS[tab]
        for r in self.read_records(tab):
            if r.get(key_col) == key:
                return r
        return None

    def append(self, tab: str, payload: dict) -> str:
        logger.debug(f"Local storage append to {tab}: {payload}")
        key_col = TABLE_KEYS[tab]
        row_key = payload.get(key_col) or str(uuid.uuid4())
        record = _validate_payload(tab, {**payload, key_col: row_key})
        with self.lock:
            rows = [r for r in self._load(tab) if r.get(key_col) != row_key]
            rows.append({c: record.get(c) for c in _columns(tab)})
            self._save(tab, rows)
        logger.info(f"Local storage appended row {key_col}={row_key} to {tab}")
        return row_key

    def update(self, tab: str, key: str, payload: dict) -> bool:
        logger.debug(f"Local storage update {tab} key={key} with {payload}")
        key_col = TABLE_KEYS[tab]
        cols = _columns(tab)
        with self.lock:
            rows = self._load(tab)
            for r in rows:
                if r.get(key_col) == key:
                    r.update({k: _to_storable(v) for k, v in payload.items() if k != key_col and k in cols})
                    self._save(tab, rows)
                    logger.info(f"Local storage updated {tab} {key_col}={key}")
                    return True
        return False

    def delete(self, tab: str, key: str) -> bool:
        logger.debug(f"Local storage delete from {tab} key={key}")
        key_col = TABLE_KEYS[tab]
        with self.lock:
            rows = self._load(tab)
            kept = [r for r in rows if r.get(key_col) != key]
            if len(kept) == len(rows):
                return False
            self._save(tab, kept)
        logger.info(f"Local storage deleted {tab} key={key}")
        return True


def repo_factory(target: PersistTarget | None = None) -> Repo:
    """Return an opened repository for ``target`` (defaults to WEBFIT_STORE)."""
    target = target or persist_target()
    if target == "local":
        logger.info("Using local storage repo")
        return LocalStorageRepo(local_storage_path()).open()
    logger.info("Using SQLite repo")
    return SQLiteRepo().open()


# --- Validation helper ---
def _validate_payload(tab: str, payload: dict) -> dict:
    """Validate an insert with the record model for ``tab``.

    Returns the JSON-ready record (dates as ISO strings). Updates skip this
    check because partial updates do not carry every required field.
    """
    model_map = {
        "Workouts": WorkoutEntry,
        "Goals": Goal,
        "Profile": Profile,
        "Exercises": ExerciseDefinition,
        "Measurements": BodyMeasurement,
    }
    model = model_map.get(tab)
    if not model:
        logger.debug(f"No validation model registered for tab {tab}")
        return payload
    try:
        return parse(model, payload).model_dump(mode="json")
    except Exception:
        logger.exception(f"Validation failed for tab={tab} payload={payload}")
        raise
