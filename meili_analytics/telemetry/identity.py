"""Persisted anonymous identity of a Meilisearch installation."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional, Tuple, Union

from meili_analytics.telemetry.errors import ErrorKind, ErrorSink

logger = logging.getLogger("meili_analytics.telemetry.identity")


class IdentityStore:
    """Loads or creates the anonymous identity stored at ``path``.

    This ID is not tied to any personal information.
    """

    def __init__(self, path: Union[str, Path], sink: Optional[ErrorSink] = None):
        self.path = Path(path)
        self.sink = sink or ErrorSink()

    def load(self) -> Tuple[str, bool]:
        """Resolve the identity and whether this is the first run.

        A missing, unreadable or empty file all yield a fresh UUID and
        ``first_run=True``. The resolved value is written back in every case;
        a failed write only costs persistence across restarts.

        Returns:
            Tuple of (identity, first_run)
        """
        stored_id = self._read()
        first_run = stored_id is None
        if first_run:
            identity = str(uuid.uuid4())
            logger.debug(f"Created new installation ID: {identity}")
        else:
            identity = stored_id
            logger.debug(f"Using existing installation ID: {identity}")

        self._write(identity)
        return identity, first_run

    def _read(self) -> Optional[str]:
        try:
            stored_id = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.debug(f"No installation ID file at {self.path}")
            return None
        except (OSError, UnicodeDecodeError) as e:
            self.sink.record(
                ErrorKind.IDENTITY_STORAGE, f"Could not read installation ID from {self.path}", e
            )
            return None
        return stored_id or None

    def _write(self, identity: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(identity, encoding="utf-8")
        except OSError as e:
            self.sink.record(
                ErrorKind.IDENTITY_STORAGE,
                f"Could not write installation ID to {self.path} (will not persist across runs)",
                e,
            )


def load_identity(path: Union[str, Path], sink: Optional[ErrorSink] = None) -> Tuple[str, bool]:
    """Load or create the identity stored at ``path``.

    Returns:
        Tuple of (identity, first_run)
    """
    return IdentityStore(path, sink).load()
