from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from vitrine.config import Settings, get_settings
from vitrine.database import get_db
from vitrine.dependencies import get_llm_provider, get_pending_store
from vitrine.main import app
from vitrine.services.pending_product_store import PendingProductStore


@pytest.fixture
def settings(tmp_path):
    """Mock-mode settings writing uploads into a temp dir."""
    return Settings(
        _env_file=None,
        uazapi_base="",
        openai_api_key="",
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://testserver",
    )


@pytest.fixture
def pending_store():
    return PendingProductStore()


@pytest.fixture
def api_db():
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = None
    return db


@pytest.fixture
def client(settings, pending_store, api_db):
    def _override_get_db():
        yield api_db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_pending_store] = lambda: pending_store
    app.dependency_overrides[get_llm_provider] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
