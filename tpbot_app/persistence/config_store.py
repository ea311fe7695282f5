"""JSON-file persistence for the run configuration."""

import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from ..config.defaults import BotDefaults
from ..config.settings import BotConfig
from ..errors import PersistenceError
from ..logging.config import get_logger


class JsonConfigStore:
    """
    Key-value JSON document holding the persisted BotConfig record.

    The file maps store keys to records, e.g. {"ticketConfig": {...}}, so
    other keys written by other tools survive a save. Writes go through a
    temp file and os.replace; readers and writers serialize on an flock'd
    sidecar lock file.
    """

    def __init__(self, path: str, key: str = BotDefaults.store_key):
        self.path = Path(path)
        self.key = key
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.logger = get_logger("persistence.config_store")
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, operation: str) -> Iterator[None]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = open(self.lock_path, "a")
        except OSError as e:
            raise PersistenceError(
                f"Cannot open lock file: {e}", operation=operation, target=str(self.lock_path)
            ) from e

        with self._lock, lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                f"Config file is not valid JSON: {e}", operation="load", target=str(self.path)
            ) from e
        except OSError as e:
            raise PersistenceError(
                f"Cannot read config file: {e}", operation="load", target=str(self.path)
            ) from e

        if not isinstance(document, dict):
            raise PersistenceError(
                "Config file must contain a JSON object", operation="load", target=str(self.path)
            )
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(
                f"Cannot write config file: {e}", operation="save", target=str(self.path)
            ) from e

    def load(self) -> BotConfig:
        """Stored configuration, or defaults when nothing has been saved yet."""
        with self._locked("load"):
            record = self._read_document().get(self.key)

        if record is None:
            self.logger.debug("No stored config, using defaults", path=str(self.path))
            return BotConfig()
        if not isinstance(record, dict):
            raise PersistenceError(
                f"Record {self.key!r} must be an object", operation="load", target=str(self.path)
            )
        try:
            return BotConfig.from_record(record)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"Record {self.key!r} has invalid values: {e}",
                operation="load",
                target=str(self.path),
            ) from e

    def save(self, config: BotConfig) -> None:
        with self._locked("save"):
            document = self._read_document()
            document[self.key] = config.to_record()
            self._write_document(document)
        self.logger.debug("Config saved", path=str(self.path), running=config.running)

    def update(self, **changes: Any) -> BotConfig:
        """Read-modify-write of the stored record; returns the new config."""
        with self._locked("update"):
            document = self._read_document()
            try:
                current = BotConfig.from_record(document.get(self.key) or {})
                updated = current.merged(**changes)
            except (TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Record {self.key!r} has invalid values: {e}",
                    operation="update",
                    target=str(self.path),
                ) from e
            document[self.key] = updated.to_record()
            self._write_document(document)
        return updated
