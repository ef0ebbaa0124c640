import pytest

from html2tex import errors


@pytest.fixture(autouse=True)
def _clean_error_context():
    errors.clear_error()
    yield
    errors.clear_error()
