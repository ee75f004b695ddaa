"""
Persisted session marker: one JSON file holding {principal, role}
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class FileSessionMarker:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        """Raw marker contents, or None if there is none or it is unreadable"""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session marker {self.path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: dict):
        # Write to a temp file and rename so a crash never leaves half a marker
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def clear(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
