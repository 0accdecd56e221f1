"""Pytest configuration and fixtures."""

import io
from contextlib import contextmanager
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine, select

from price_ingest.config import Config, DatabaseConfig
from price_ingest.models import PriceDistributionRecord
from price_ingest.writer import ReplaceWriter, price_distribution_table

SAMPLE_CSV = b"header\n1,2,100,500,3\n1,2,101,250,10\n"


@pytest.fixture
def mock_aws_credentials(monkeypatch):
    """Mock AWS credentials for testing."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def mock_context():
    """Mock Lambda context object."""
    context = Mock()
    context.aws_request_id = 'test-request-id-12345'
    context.function_name = 'price-distribution-ingest'
    context.memory_limit_in_mb = 256
    return context


def s3_record(bucket, key, size=1024):
    """One S3 ObjectCreated event record."""
    return {
        "eventVersion": "2.1",
        "eventSource": "aws:s3",
        "awsRegion": "us-east-1",
        "eventTime": "2024-11-14T10:30:00.000Z",
        "eventName": "ObjectCreated:Put",
        "s3": {
            "s3SchemaVersion": "1.0",
            "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
            "object": {"key": key, "size": size, "eTag": "0123456789abcdef0123456789abcdef"},
        },
    }


@pytest.fixture
def make_s3_event():
    """Build an S3 event from (bucket, key) pairs."""
    def _make(*objects):
        return {"Records": [s3_record(bucket, key) for bucket, key in objects]}
    return _make


class FakeFetcher:
    """Serves in-memory objects and records every fetch."""

    def __init__(self, objects):
        self.objects = objects
        self.calls = []
        self.streams = []

    @contextmanager
    def fetch(self, bucket, key):
        self.calls.append((bucket, key))
        stream = io.BytesIO(self.objects[(bucket, key)])
        self.streams.append(stream)
        try:
            yield stream
        finally:
            stream.close()


@pytest.fixture
def sample_csv():
    """The two-row sample price distribution file."""
    return SAMPLE_CSV


@pytest.fixture
def fake_fetcher():
    """Build a FakeFetcher serving the given objects."""
    return FakeFetcher


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite database holding an empty price distribution table."""
    url = f"sqlite:///{tmp_path / 'prices.db'}"
    engine = create_engine(url)
    price_distribution_table("price_distributions").metadata.create_all(engine)
    engine.dispose()
    return url


@pytest.fixture
def read_rows(database_url):
    """Read the destination table's rows through a separate connection."""
    def _read(table_name="price_distributions"):
        engine = create_engine(database_url)
        table = price_distribution_table(table_name)
        try:
            with engine.connect() as conn:
                rows = conn.execute(select(table)).fetchall()
        finally:
            engine.dispose()
        return sorted(PriceDistributionRecord(*row) for row in rows)
    return _read


@pytest.fixture
def seed_rows(database_url):
    """Store rows in the destination table ahead of a test."""
    def _seed(records):
        with ReplaceWriter(database_url) as writer:
            writer.replace_all(records)
    return _seed


@pytest.fixture
def test_config(database_url):
    """Configuration pointing at the test database."""
    return Config(database=DatabaseConfig(connection_string=database_url, insert_batch_size=2))
