"""Run the price distribution ingest locally against S3 objects."""

import argparse
import sys
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

from .config import load_config
from .coordinator import EventCoordinator
from .exceptions import IngestError
from .utils.logger import get_logger
from .writer import ReplaceWriter

logger = get_logger(__name__)


def split_s3_uri(uri: str) -> Tuple[str, str]:
    """Split ``s3://bucket/key`` into bucket and key."""
    if not uri.startswith("s3://"):
        raise argparse.ArgumentTypeError(f"not an s3:// URI: {uri}")
    bucket, _, key = uri[len("s3://"):].partition("/")
    if not bucket or not key:
        raise argparse.ArgumentTypeError(f"S3 URI must name a bucket and key: {uri}")
    return bucket, key


def build_event(objects: List[Tuple[str, str]]) -> dict:
    """Build an S3 ObjectCreated event; keys are escaped as S3 escapes them."""
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": bucket},
                    "object": {"key": quote_plus(key, safe="/")},
                },
            }
            for bucket, key in objects
        ]
    }


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replace the price distribution table with the contents of S3 CSV files"
    )
    parser.add_argument(
        "uris",
        nargs="*",
        type=split_s3_uri,
        metavar="S3_URI",
        help="Objects to ingest, as s3://bucket/key (processed in order)",
    )
    parser.add_argument("--bucket", type=str, help="S3 bucket name (with --key)")
    parser.add_argument("--key", type=str, help="S3 object key (with --bucket)")
    parser.add_argument(
        "--database-url",
        type=str,
        help="Database connection string (default: DB_CONNECTION_STRING)",
    )
    parser.add_argument("--table", type=str, help="Destination table (default: PRICE_DISTRIBUTIONS_TABLE)")
    parser.add_argument(
        "--create-table",
        action="store_true",
        help="Create the destination table if it does not exist",
    )

    args = parser.parse_args(argv)
    if bool(args.bucket) != bool(args.key):
        parser.error("--bucket and --key must be given together")
    if args.bucket:
        args.uris.append((args.bucket, args.key))
    if not args.uris:
        parser.error("no S3 objects given")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script."""
    args = parse_args(argv)

    config = load_config()
    if args.database_url:
        config.database.connection_string = args.database_url
    if args.table:
        config.database.table_name = args.table

    def writer_factory() -> ReplaceWriter:
        writer = ReplaceWriter(
            config.database.connection_string,
            table_name=config.database.table_name,
            batch_size=config.database.insert_batch_size,
        )
        if args.create_table:
            writer.connect()
            try:
                writer.ensure_table()
            except IngestError:
                writer.close()
                raise
        return writer

    coordinator = EventCoordinator(config, writer_factory=writer_factory)

    try:
        results = coordinator.handle(build_event(args.uris))
    except IngestError as e:
        logger.error(f"Ingest failed: {e}")
        return 1

    for result in results:
        logger.info(f"s3://{result.bucket}/{result.key}: {result.record_count} price distributions")
    return 0


if __name__ == "__main__":
    sys.exit(main())
