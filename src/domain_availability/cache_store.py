"""
On-disk persistence of the TLD -> RDAP server snapshot.

The file is a JSON document ``{"timestamp": <epoch millis>, "serverMap":
{tld: [url, ...]}}``. Writes go to a temporary file in the same directory
and are then renamed over the target, so readers never see a partial file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import PersistenceError
from .models import RegistryCache


class RegistryCacheStore:
    """Reads and atomically writes the registry cache file."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> Optional[RegistryCache]:
        """
        Load the cache snapshot.

        Returns:
            RegistryCache, or None if the file does not exist

        Raises:
            PersistenceError: If the file cannot be read or is malformed
        """
        if not self._file_path.exists():
            return None

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                code="parse_error",
                message=f"Failed to parse registry cache: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to read registry cache: {e}",
                details={"file_path": str(self._file_path)},
            )

        try:
            return RegistryCache.from_dict(raw_data)
        except ValueError as e:
            raise PersistenceError(
                code="invalid_format",
                message=f"Invalid registry cache: {e}",
                details={"file_path": str(self._file_path)},
            )

    def save(self, cache: RegistryCache) -> None:
        """
        Write the snapshot atomically, creating parent directories.

        Raises:
            PersistenceError: If the file cannot be written
        """
        directory = self._file_path.parent
        tmp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._file_path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(cache.to_dict(), f, indent=2)
            os.replace(tmp_name, self._file_path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to write registry cache: {e}",
                details={"file_path": str(self._file_path)},
            )
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
