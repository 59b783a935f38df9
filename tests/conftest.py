"""
Pytest configuration.

Provides a populated in-memory phpIPAM and a lifecycle bound to it:

    Production (1)
        Web Servers  10.0.1.0/24  (7)
        Databases    10.0.2.0/24  (8)
    Lab (2)
        Web Servers  10.9.0.0/24  (9)
"""

import pytest
from loguru import logger

from fakes import FakeIPAMClient
from phpipam_provider.core import AddressLifecycle


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # CLI tests attach sinks to streams that close with the invocation
    logger.remove()


@pytest.fixture
def fake_client() -> FakeIPAMClient:
    client = FakeIPAMClient()
    client.add_section("1", "Production")
    client.add_section("2", "Lab")
    client.add_subnet("7", "1", "Web Servers", "10.0.1.0/24")
    client.add_subnet("8", "1", "Databases", "10.0.2.0/24")
    client.add_subnet("9", "2", "Web Servers", "10.9.0.0/24")
    return client


@pytest.fixture
def lifecycle(fake_client) -> AddressLifecycle:
    return AddressLifecycle(fake_client)
