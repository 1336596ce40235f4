"""
InternDesk - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Dict, List

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

# Set testing environment before the settings singleton is created
os.environ['ENVIRONMENT'] = 'development'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['LOG_FILE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['PUBLIC_BASE_URL'] = 'http://test'
os.environ['PROTECTED_PASSCODE'] = 'test-passcode'
os.environ['OFFER_PERIOD_RULE'] = 'billing_cycle'
os.environ['CERTIFICATE_TEMPLATE_URL'] = ''
os.environ['SENDGRID_API_KEY'] = ''
os.environ['USE_SENDGRID'] = 'false'
os.environ['SMTP_USER'] = 'mailer@example.com'
os.environ['SMTP_PASSWORD'] = 'test-smtp-password'
os.environ['WIX_API_KEY'] = 'test-wix-key'
os.environ['WIX_SITE_ID'] = 'test-site-id'

from app.main import app
from app.api.deps import get_asset_loader, get_email_service, get_form_api, get_storage
from app.core.config import settings
from app.core.database import Database
from app.core.exceptions import S3DownloadError, S3UploadError
from app.services.asset_loader import AssetLoader
from app.services.email_service import EmailService
from app.services.form_api_service import FormApiService

fake = Faker()

PASSCODE = 'test-passcode'
STORAGE_BASE_URL = 'http://storage.test/interndesk-documents'


class InMemoryStorage:
    """Stands in for StorageService; objects live in a dict"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.deleted: List[str] = []
        self.fail_uploads = False

    def public_url(self, key: str) -> str:
        return f"{STORAGE_BASE_URL}/{key}"

    async def upload_document(self, content: bytes, key: str) -> str:
        if self.fail_uploads:
            raise S3UploadError(key, "simulated outage")
        if not content:
            raise S3UploadError(key, "Refusing to upload an empty document")
        self.objects[key] = content
        self.uploads.append(key)
        return self.public_url(key)

    async def fetch_document(self, url: str) -> bytes:
        key = url[len(STORAGE_BASE_URL) + 1:]
        if key not in self.objects:
            raise S3DownloadError(key, "Document not found in storage")
        return self.objects[key]

    async def delete_document(self, key: str) -> bool:
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None

    async def close(self) -> None:
        pass


class OfflineAssetLoader(AssetLoader):
    """Every fetch fails, so renders use placeholders and skip images"""

    def __init__(self):
        super().__init__(settings, client=httpx.AsyncClient())
        self.requested: List[str] = []

    async def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        raise httpx.ConnectError("offline", request=httpx.Request("GET", self.resolve(url)))


class RecordingEmailService(EmailService):
    """Real templates and validation; the transport only records"""

    def __init__(self):
        super().__init__(settings)
        self.sent: List[Dict[str, str]] = []
        self.transport_ok = True

    async def send_email(self, to_email, subject, html_content, text_content=None) -> bool:
        if not self.transport_ok:
            return False
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content,
        })
        return True


def wix_transport(status_code: int = 200, status: str = "CONFIRMED") -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code, json={"message": "upstream error"})
        submission_id = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={"submission": {"id": submission_id, "status": status}})
    return httpx.MockTransport(handler)


@pytest.fixture(scope='function')
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh on-disk SQLite database for each test"""
    db = Database(settings, url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
async def assets() -> AsyncGenerator[OfflineAssetLoader, None]:
    loader = OfflineAssetLoader()
    yield loader
    await loader.close()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
async def form_api() -> AsyncGenerator[FormApiService, None]:
    service = FormApiService(settings, client=httpx.AsyncClient(transport=wix_transport()))
    yield service
    await service.close()


@pytest.fixture
async def client(database, storage, assets, email_service, form_api) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the process-wide handles replaced by test doubles"""
    app.state.db = database
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_asset_loader] = lambda: assets
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_form_api] = lambda: form_api

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def passcode_cookie() -> Dict[str, str]:
    return {settings.PASSCODE_COOKIE_NAME: PASSCODE}


@pytest.fixture
def candidate() -> Dict[str, str]:
    """Offer letter submission as the form builder posts it"""
    return {
        "id": f"sub-{fake.uuid4()[:8]}",
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "email": fake.email(),
        "domain": "Web Development",
        "date_time": "2025-03-05T00:00:00Z",
    }


@pytest.fixture
def certificate_candidate() -> Dict[str, str]:
    return {
        "submission_id": f"cert-{fake.uuid4()[:8]}",
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "email": fake.email(),
        "domain": "Data Science",
        "start_date": "2025-03-15",
        "end_date": "14/04/2025",
        "tasks_performed": "4",
        "linkedin_task1": "https://linkedin.com/posts/one",
        "github_task1": "https://github.com/someone/project",
    }


@pytest.fixture
async def form_api_returning(client):
    """Swap in a form API client whose upstream answers with a given status code"""
    services: List[FormApiService] = []

    def install(status_code: int, status: str = "CONFIRMED") -> FormApiService:
        service = FormApiService(settings, client=httpx.AsyncClient(transport=wix_transport(status_code, status)))
        services.append(service)
        app.dependency_overrides[get_form_api] = lambda: service
        return service

    yield install

    for service in services:
        await service.close()
