from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load test environment variables from .env.test in the project root
project_root = Path(__file__).resolve().parents[2]
dotenv_path = project_root / ".env.test"
if dotenv_path.exists():
    load_dotenv(dotenv_path=dotenv_path)

from travel_form.api.main import create_app
from travel_form.config.settings import Settings
from travel_form.tests.helpers import make_settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings):
    """Application with its lifespan running, so the store and storage are built."""
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
