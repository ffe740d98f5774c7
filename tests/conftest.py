import pytest

from arrayspace.core.config import reset_config


@pytest.fixture(autouse=True)
def default_config():
    """Каждый тест начинается с конфигурации по умолчанию."""
    reset_config()
    yield
    reset_config()
