"""Fixtures for tests against a live Neo4j server.

Set NEO4J_URL, NEO4J_USER and NEO4J_PASS to run them; they are skipped
otherwise.
"""

import asyncio
import os

import pytest
from neo4j.exceptions import ServiceUnavailable, SessionExpired

from cypher_builder.neo4j import Connection, Credentials, shutdown

READY_ATTEMPTS = 20
READY_INTERVAL = 0.1


@pytest.fixture
def neo4j_url() -> str:
    url = os.environ.get("NEO4J_URL")
    if not url:
        pytest.skip("NEO4J_URL is not set")
    return url


@pytest.fixture
def neo4j_credentials() -> Credentials:
    return Credentials(
        username=os.environ.get("NEO4J_USER", "neo4j"),
        password=os.environ.get("NEO4J_PASS", "password"),
    )


async def wait_for_neo4j(url: str, credentials: Credentials) -> bool:
    """Poll the server until it answers a trivial query."""
    probe = Connection(url, credentials)
    try:
        for attempt in range(READY_ATTEMPTS):
            if attempt:
                await asyncio.sleep(READY_INTERVAL)
            try:
                await probe.return_clause("1").run()
                return True
            except (ServiceUnavailable, SessionExpired, OSError):
                continue
        return False
    finally:
        await probe.close()


@pytest.fixture
async def live_connection(neo4j_url: str, neo4j_credentials: Credentials):
    if not await wait_for_neo4j(neo4j_url, neo4j_credentials):
        pytest.skip(f"Neo4j at {neo4j_url} did not become available")

    connection = Connection(neo4j_url, neo4j_credentials)
    yield connection
    await shutdown()
