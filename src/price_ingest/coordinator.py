"""Drive fetch, parse and replace for each file in an S3 event."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import Config
from .exceptions import InvalidEventError
from .fetcher import S3ObjectFetcher
from .models import FileReference, RecordBatch, decode_object_key
from .parser import parse_price_distributions
from .utils.logger import get_logger
from .writer import ReplaceWriter

logger = get_logger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    WRITING = "writing"
    FAILED = "failed"


@dataclass(frozen=True)
class IngestResult:
    bucket: str
    key: str
    record_count: int


def file_references(event: Dict[str, Any]) -> List[FileReference]:
    """
    Extract file references from an S3 event, in arrival order.

    Raises:
        InvalidEventError: If the event has no ``Records`` list or a record
            does not name an S3 object.
    """
    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        raise InvalidEventError("event does not contain a Records list")
    return [FileReference.from_s3_record(record) for record in records]


class EventCoordinator:
    """Ingests every file named by an S3 event, stopping at the first error."""

    def __init__(
        self,
        config: Config,
        fetcher: Optional[S3ObjectFetcher] = None,
        writer_factory: Optional[Callable[[], ReplaceWriter]] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config: Configuration sourced by the caller
            fetcher: Object fetcher. Defaults to an S3 fetcher for the
                configured region.
            writer_factory: Builds the per-invocation writer. Defaults to a
                ReplaceWriter for the configured database.
        """
        self.config = config
        self.fetcher = fetcher or S3ObjectFetcher(region=config.aws.region)
        self.writer_factory = writer_factory or self._default_writer
        self.state = Stage.IDLE

    def _default_writer(self) -> ReplaceWriter:
        return ReplaceWriter(
            self.config.database.connection_string,
            table_name=self.config.database.table_name,
            batch_size=self.config.database.insert_batch_size,
        )

    def handle(self, event: Dict[str, Any]) -> List[IngestResult]:
        """
        Replace the destination table once per file in the event.

        Files are processed in order. The first error aborts the rest of
        the event and is raised to the caller; files already written stay
        written.

        Args:
            event: S3 event notification

        Returns:
            One IngestResult per file, in processing order.

        Raises:
            IngestError: The first failure encountered.
        """
        self.state = Stage.IDLE
        try:
            references = file_references(event)
            with self.writer_factory() as writer:
                results = [self._ingest(reference, writer) for reference in references]
        except Exception:
            self.state = Stage.FAILED
            raise

        self.state = Stage.IDLE
        return results

    def _ingest(self, reference: FileReference, writer: ReplaceWriter) -> IngestResult:
        key = decode_object_key(reference.key)

        self.state = Stage.FETCHING
        logger.info(f"downloading file {key}")
        with self.fetcher.fetch(reference.bucket, key) as body:
            self.state = Stage.PARSING
            logger.info("reading price distributions from file..")
            batch: RecordBatch = list(parse_price_distributions(body))

        self.state = Stage.WRITING
        logger.info(f"writing {len(batch)} price distributions to database")
        count = writer.replace_all(batch)

        self.state = Stage.IDLE
        return IngestResult(bucket=reference.bucket, key=key, record_count=count)
