"""Atomic replacement of the price distribution table."""

from typing import Iterable, List, Optional, Sequence
import psycopg2
from sqlalchemy import Column, Integer, MetaData, SmallInteger, Table, create_engine, delete, insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import WriteError
from .models import PriceDistributionRecord
from .utils.logger import get_logger

logger = get_logger(__name__)


def price_distribution_table(table_name: str, metadata: Optional[MetaData] = None) -> Table:
    """Describe the destination table."""
    return Table(
        table_name,
        metadata if metadata is not None else MetaData(),
        Column("realm_id", SmallInteger, nullable=False),
        Column("auction_house_id", SmallInteger, nullable=False),
        Column("item_id", Integer, nullable=False),
        Column("buyout_each", Integer, nullable=False),
        Column("quantity", Integer, nullable=False),
    )


def create_db_engine(connection_string: Optional[str]) -> Engine:
    """
    Create a SQLAlchemy engine from a connection string.

    Accepts SQLAlchemy URLs (``postgres://`` is rewritten to
    ``postgresql://``) and libpq key/value DSNs such as
    ``host=db dbname=auctions user=ingest``.

    Raises:
        WriteError: If the connection string is missing or invalid.
    """
    if not connection_string or not connection_string.strip():
        raise WriteError("error connecting to database: no connection string configured")

    connection_string = connection_string.strip()
    try:
        if "://" not in connection_string:
            return create_engine(
                "postgresql+psycopg2://",
                creator=lambda: psycopg2.connect(connection_string),
            )
        if connection_string.startswith("postgres://"):
            connection_string = "postgresql://" + connection_string[len("postgres://"):]
        return create_engine(connection_string)
    except (SQLAlchemyError, ImportError, ValueError) as e:
        raise WriteError(f"error connecting to database: invalid connection string: {e}") from e


class ReplaceWriter:
    """Replaces the whole contents of the price distribution table."""

    def __init__(
        self,
        connection_string: Optional[str],
        table_name: str = "price_distributions",
        batch_size: int = 1000,
    ):
        """
        Initialize the writer. No connection is made until ``connect``.

        Args:
            connection_string: Database URL or libpq DSN
            table_name: Destination table
            batch_size: Rows per INSERT statement
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.connection_string = connection_string
        self.table = price_distribution_table(table_name)
        self.batch_size = batch_size
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None

    def __enter__(self) -> "ReplaceWriter":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise WriteError("writer is not connected")
        return self._connection

    def connect(self) -> None:
        """
        Open the invocation's database connection.

        Raises:
            WriteError: If the connection string is unusable or the
                database cannot be reached.
        """
        if self._connection is not None:
            return

        self._engine = create_db_engine(self.connection_string)
        try:
            self._connection = self._engine.connect()
        except (SQLAlchemyError, psycopg2.Error) as e:
            self._engine.dispose()
            self._engine = None
            raise WriteError(f"error connecting to database: {e}") from e
        logger.info("Database connection established")

    def ensure_table(self) -> None:
        """Create the destination table if it does not exist."""
        try:
            with self.connection.begin():
                self.table.metadata.create_all(self.connection, tables=[self.table])
        except SQLAlchemyError as e:
            raise WriteError(f"error creating table {self.table.name}: {e}") from e

    def replace_all(self, records: Sequence[PriceDistributionRecord]) -> int:
        """
        Replace every row of the destination table with ``records``.

        The delete and all inserts run in a single transaction, so readers
        see either the previous rows or the new ones. An empty batch
        leaves the table empty.

        Args:
            records: Complete record batch for one file

        Returns:
            Number of rows written.

        Raises:
            WriteError: If any statement fails; the transaction is rolled back.
        """
        try:
            with self.connection.begin():
                deleted = self.connection.execute(delete(self.table)).rowcount
                logger.debug(f"Deleted {deleted} rows from {self.table.name}")
                for chunk in _chunks(records, self.batch_size):
                    self.connection.execute(insert(self.table), [r._asdict() for r in chunk])
        except SQLAlchemyError as e:
            raise WriteError(
                f"error inserting price distributions into {self.table.name}: {e}"
            ) from e

        logger.info(f"Replaced contents of {self.table.name} with {len(records)} rows")
        return len(records)

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")


def _chunks(records: Iterable[PriceDistributionRecord], size: int) -> Iterable[List[PriceDistributionRecord]]:
    chunk: List[PriceDistributionRecord] = []
    for record in records:
        chunk.append(record)
        if len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk
