"""Retrieve price distribution files from S3 using Boto3."""

from contextlib import contextmanager
from typing import Any, BinaryIO, Iterator, Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import FetchError
from .utils.logger import get_logger

logger = get_logger(__name__)


class S3ObjectFetcher:
    """Opens S3 objects as byte streams."""

    def __init__(self, region: Optional[str] = None):
        """
        Initialize the fetcher.

        Args:
            region: AWS region for the S3 client. If None, boto3 resolves it.
        """
        self.region = region

    def _create_client(self) -> Any:
        # A fresh session per fetch; nothing is shared between calls
        session = boto3.session.Session()
        return session.client("s3", region_name=self.region)

    @contextmanager
    def fetch(self, bucket: str, key: str) -> Iterator[BinaryIO]:
        """
        Open an S3 object for reading.

        The body is closed when the ``with`` block exits, whether or not the
        caller consumed it. S3 errors raised while the caller reads the body
        are reported the same way as errors opening it.

        Args:
            bucket: S3 bucket name
            key: Decoded S3 object key

        Yields:
            The object's streaming body.

        Raises:
            FetchError: On any authentication, network or not-found error.
        """
        if not bucket or not key:
            raise FetchError(bucket, key, "bucket and key must be non-empty")

        try:
            s3_client = self._create_client()
            response = s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            raise FetchError(bucket, key, f"{error_code or 'client error'}: {e}") from e
        except BotoCoreError as e:
            raise FetchError(bucket, key, str(e)) from e

        body = response["Body"]
        logger.debug(f"Opened s3://{bucket}/{key} ({response.get('ContentLength', 'unknown')} bytes)")
        try:
            yield body
        except (ClientError, BotoCoreError) as e:
            raise FetchError(bucket, key, f"error reading object body: {e}") from e
        finally:
            body.close()
