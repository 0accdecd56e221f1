"""
Lambda entry point for price distribution ingestion.

Triggered by S3 ObjectCreated events. Each file named in the event replaces
the contents of the price distribution table. Errors are re-raised so the
Lambda runtime can apply its retry and dead-letter policy.
"""

import json
from typing import Any, Dict, Optional

from .config import load_config
from .coordinator import EventCoordinator
from .exceptions import IngestError
from .utils.logger import get_logger

logger = get_logger(__name__)

_coordinator: Optional[EventCoordinator] = None


def get_coordinator() -> EventCoordinator:
    """Build the coordinator once per Lambda execution environment."""
    global _coordinator
    if _coordinator is None:
        _coordinator = EventCoordinator(load_config())
    return _coordinator


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for S3 event notifications.

    Args:
        event: S3 event data containing Records with S3 object information
        context: Lambda context object with runtime information

    Returns:
        Response dictionary with statusCode and the files ingested.
    """
    request_id = getattr(context, "aws_request_id", None)
    records = event.get("Records") if isinstance(event, dict) else None
    record_count = len(records) if isinstance(records, list) else 0
    logger.info(f"Received S3 event with {record_count} record(s) (request {request_id})")

    try:
        results = get_coordinator().handle(event)
    except IngestError as e:
        logger.error(f"Error processing S3 event: {e}", exc_info=True)
        raise

    files = [
        {"bucket": result.bucket, "key": result.key, "records": result.record_count}
        for result in results
    ]
    logger.info(f"Successfully processed {len(files)} file(s)")

    return {
        "statusCode": 200,
        "body": json.dumps({
            "message": "Price distributions ingested successfully",
            "files_processed": len(files),
            "files": files,
        }),
    }
