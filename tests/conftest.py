# tests/conftest.py
import pytest

from fakes import FakeProbe


@pytest.fixture
def fake_probe():
    return FakeProbe(dest_ttl=4)
