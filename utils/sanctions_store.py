# utils/sanctions_store.py
import json
import logging
import os
import tempfile
from typing import Any, Dict

log = logging.getLogger(__name__)


def empty_document() -> Dict[str, Any]:
    return {"guilds": {}}


def atomic_write_json(path: str, payload: Dict[str, Any]) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix="sanctions_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


class LedgerStore:
    """
    Whole-document JSON persistence for the sanctions ledger.

    Disk shape:
    {
      "guilds": { guild_id: { "sanctions": [ SanctionRecord, ... ] } }
    }

    Nothing is cached between calls: every operation loads the file, mutates
    the returned dict and saves it back.
    """

    def __init__(self, db_path: str):
        self.path = db_path

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return empty_document()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.error("Could not read sanctions ledger %s, starting empty: %s", self.path, e)
            return empty_document()

        if not isinstance(data, dict) or not isinstance(data.get("guilds", {}), dict):
            log.error("Sanctions ledger %s has an unexpected shape, starting empty", self.path)
            return empty_document()
        data.setdefault("guilds", {})
        return data

    def save(self, doc: Dict[str, Any]) -> bool:
        try:
            atomic_write_json(self.path, doc)
        except (OSError, TypeError, ValueError):
            log.exception("Failed to save sanctions ledger to %s", self.path)
            return False
        return True
