"""Single-slot persistence of the last seen publication."""

import json
import logging
import os
import tempfile
from typing import Optional

from .models import Item

logger = logging.getLogger(__name__)


class StateStore:
    """
    Stores exactly one Item as a JSON file.

    Reads never raise: a missing or corrupted file means "no prior state".
    Writes are atomic (temp file + rename) so an interrupted save leaves
    the previous state intact.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Item]:
        if not os.path.exists(self.path):
            logger.info(f"No state file found at {self.path}. Starting fresh.")
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read state file {self.path}: {e}. Starting fresh.")
            return None

        item = Item.from_dict(data)
        if item is None:
            logger.warning(f"Invalid data format in state file {self.path}. Starting fresh.")
            return None
        logger.info(f"Loaded last seen publication from {self.path}")
        return item

    def save(self, item: Item) -> bool:
        """
        Persist the item, replacing any previous state.

        Returns:
            True on success, False if the write failed (logged, not raised).
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".state-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(item.to_dict(), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Failed to write state file {self.path}: {e}")
            return False
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.info(f"Saved last seen publication to {self.path}")
        return True

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info(f"Removed state file {self.path}")
