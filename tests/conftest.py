"""Shared fixtures for converter tests."""

import pytest


@pytest.fixture
def write_trx(tmp_path):
    """Return a function that writes TRX content to a file and returns its path."""

    def _write(content: str, name: str = "MyAssembly.Tests.trx"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
