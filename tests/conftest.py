import pytest


@pytest.fixture
def anyio_backend() -> str:
    # The code under test and these tests use asyncio primitives directly.
    return "asyncio"
