"""Shared test configuration and fixtures."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env from project root so credential-dependent code sees the same environment as the CLI
root = Path(__file__).parent.parent.resolve()
load_dotenv(root / ".env")

CREDENTIAL_VARIABLES = (
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_DEPLOYMENT_NAME",
    "OPENAI_API_KEY",
    "SCANCLEAN_MODEL",
    "SCANCLEAN_MAX_RETRIES",
    "SCANCLEAN_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with every analysis-service variable unset."""
    for name in CREDENTIAL_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
