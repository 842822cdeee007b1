# tests/conftest.py
import pytest
from loguru import logger

from meteokit.backend import BackendConfiguration, BackendService
from meteokit.network import NetworkService

API_BASE_URL = "https://api.example.com/v1"


@pytest.fixture(autouse=True)
def reset_default_configuration():
    """Each test starts from an empty process-wide backend configuration."""
    BackendConfiguration.reset_default()
    yield
    BackendConfiguration.reset_default()


@pytest.fixture
def configuration() -> BackendConfiguration:
    return BackendConfiguration(base_url=API_BASE_URL)


@pytest.fixture
def backend(configuration: BackendConfiguration) -> BackendService:
    """BackendService pointed at the test API, with its own HTTP client."""
    return BackendService(configuration, NetworkService(user_agent="meteokit-tests"))


@pytest.fixture
def log_messages():
    """Collects the messages logged at WARNING level or above."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    yield messages
    logger.remove(handler_id)
