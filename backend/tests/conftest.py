"""
InnoVoice - Test Configuration and Fixtures
"""
import os
import json
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

STAFF_SECRETS = {
    'exec-secret': {'role': 'executive', 'label': 'Executive', 'color': '#2563EB'},
    'press-secret': {'role': 'press_secretary', 'label': 'Press Secretary', 'color': '#DB2777'},
    'dev-secret': {'role': 'developer', 'label': 'Developer', 'color': '#059669'},
}

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_innovoice.db'
os.environ['STAFF_ACCOUNTS'] = json.dumps(STAFF_SECRETS)
os.environ['ANTHROPIC_API_KEY'] = ''
os.environ['STORAGE_MODE'] = 'none'
os.environ['RATE_LIMIT_ENABLED'] = 'false'

from app.main import app
from app.core.database import Base, get_db
from app.core.security import StaffDirectory, StaffIdentity
from app.api.dependencies import get_presence_tracker, get_priority_classifier, get_attachment_store
from app.modules.auth.dependencies import get_staff_directory
from app.services.attachment_store import AttachmentStore
from app.services.presence_tracker import PresenceTracker
from app.services.priority_classifier import PriorityClassifier
from app import models  # noqa: F401  register tables on the metadata

from mocks.mock_claude import MockClaudeClient
from mocks.mock_storage import MockStorageClient

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_innovoice.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# 1x1 transparent PNG
PNG_BASE64 = (
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=='
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database schema and session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def mock_claude() -> MockClaudeClient:
    return MockClaudeClient()


@pytest.fixture
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def classifier(mock_claude: MockClaudeClient) -> PriorityClassifier:
    return PriorityClassifier(client=mock_claude, timeout_seconds=2)


@pytest.fixture
def attachments(mock_storage: MockStorageClient) -> AttachmentStore:
    return AttachmentStore(storage=mock_storage, folder='test-images', timeout_seconds=2)


@pytest.fixture
def staff_directory() -> StaffDirectory:
    return StaffDirectory(STAFF_SECRETS, privileged_role='developer')


@pytest.fixture
def presence_tracker() -> PresenceTracker:
    return PresenceTracker(window_seconds=35)


@pytest.fixture
async def client(
    db_session: AsyncSession,
    classifier: PriorityClassifier,
    attachments: AttachmentStore,
    staff_directory: StaffDirectory,
    presence_tracker: PresenceTracker,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and collaborator overrides"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_priority_classifier] = lambda: classifier
    app.dependency_overrides[get_attachment_store] = lambda: attachments
    app.dependency_overrides[get_staff_directory] = lambda: staff_directory
    app.dependency_overrides[get_presence_tracker] = lambda: presence_tracker

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def executive() -> StaffIdentity:
    return StaffIdentity(**STAFF_SECRETS['exec-secret'])


@pytest.fixture
def developer() -> StaffIdentity:
    return StaffIdentity(**STAFF_SECRETS['dev-secret'])


@pytest.fixture
def staff_headers() -> dict:
    """Credential header for a non-privileged staff member"""
    return {'X-Admin-Password': 'exec-secret'}


@pytest.fixture
def developer_headers() -> dict:
    """Credential header for the privileged role"""
    return {'X-Admin-Password': 'dev-secret'}


def make_suggestion_payload(**overrides) -> dict:
    """Public submission body in camelCase"""
    payload = {
        'category': 'academic',
        'title': fake.sentence(nb_words=6)[:200],
        'content': fake.paragraph(nb_sentences=3)[:2000],
        'isAnonymous': False,
        'submitter': {
            'name': fake.name(),
            'studentId': fake.numerify('2024-#####'),
            'email': fake.email(),
            'course': 'BS Computer Science',
            'yearLevel': '2nd Year',
            'wantsFollowUp': True,
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def suggestion_payload() -> dict:
    return make_suggestion_payload()


@pytest.fixture
async def created_suggestion(client: AsyncClient, suggestion_payload: dict) -> dict:
    """A suggestion submitted through the public endpoint"""
    response = await client.post('/api/suggestions', json=suggestion_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def suggestion_id(client: AsyncClient, created_suggestion: dict, staff_headers: dict) -> str:
    """Id of `created_suggestion`, as staff see it"""
    response = await client.get(
        '/api/admin/suggestions',
        params={'search': created_suggestion['trackingCode']},
        headers=staff_headers,
    )
    return response.json()['items'][0]['id']
