"""File-based storage with atomic replacement"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class Storage:
    """A single JSON document on disk.

    Writes go to a temp file in the target directory and are moved into
    place with ``os.replace``, so readers see either the old or the new
    document, never a partial one.
    """

    def __init__(self, path: Path, mode: int | None = None):
        self.path = Path(path)
        self.mode = mode

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Any | None:
        """Return the parsed document, or None when the file is missing.

        Raises ``ValueError`` (``json.JSONDecodeError``) for malformed content.
        """
        if not self.path.exists():
            return None
        return json.loads(self.path.read_text(encoding="utf-8"))

    def write(self, data: Any):
        self.write_text(json.dumps(data, indent=2))

    def write_text(self, payload: str):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            if self.mode is not None:
                os.chmod(tmp_path, self.mode)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def delete(self):
        if self.path.exists():
            self.path.unlink()
