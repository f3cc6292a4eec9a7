"""Mapping store: root identifier -> sealed archive path."""

import logging
import sqlite3

from common.exceptions import LookupFailureError, NotFoundError
from common.types import ArchiveRecord
from gateway.database import get_db_connection

logger = logging.getLogger(__name__)


class MappingStore:
    """
    Read-only view of the archive_records table.

    Each lookup opens its own connection, so one instance can be shared by
    concurrent requests.
    """

    def __init__(self, database_path: str):
        self.database_path = database_path

    def lookup(self, identifier: str) -> ArchiveRecord:
        """
        Find the archive mapped to an identifier.

        Args:
            identifier: Root identifier, compared by exact string equality

        Returns:
            ArchiveRecord for the identifier

        Raises:
            NotFoundError: If no record exists
            LookupFailureError: If the database cannot be queried
        """
        try:
            with get_db_connection(self.database_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT identifier, file_path FROM archive_records WHERE identifier = ?",
                    (identifier,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Mapping store lookup failed [identifier={identifier}]: {e}")
            raise LookupFailureError(f"Mapping store unavailable: {e}") from e

        if row is None:
            raise NotFoundError(f"No archive found for {identifier}")

        return ArchiveRecord(identifier=row["identifier"], file_path=row["file_path"])

    def ping(self) -> None:
        """
        Check that the mapping table can be queried.

        Raises:
            LookupFailureError: If it cannot
        """
        try:
            with get_db_connection(self.database_path) as conn:
                conn.execute("SELECT 1 FROM archive_records LIMIT 1").fetchall()
        except sqlite3.Error as e:
            raise LookupFailureError(f"Mapping store unavailable: {e}") from e
