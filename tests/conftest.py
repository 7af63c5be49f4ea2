"""Pytest configuration and fixtures."""
import asyncio
from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest
from unittest.mock import AsyncMock, MagicMock

from pipeline.assembler import ContentAssembler
from pipeline.errors import DuplicateSlugError
from pipeline.orchestrator import ContentPipeline
from pipeline.prompts import PromptRole
from pipeline.status import CLAIMABLE_STATUSES, SourceItemStatus
from pipeline.variants import ArticleRewriteVariant, FixturePredictionVariant
from shared.utils import get_utc_now

GENERATED_TITLE = "Late surge seals derby triumph for the champions"
GENERATED_BODY = (
    "<h2>A derby to remember</h2>"
    "<p>Two goals in the final ten minutes turned a tense afternoon into a statement win.</p>"
    "<h2>What comes next</h2>"
    "<p>The champions now travel for a midweek fixture with momentum on their side.</p>"
)


class FakeSourceItemRepository:
    """In-memory source_items with the same conditional-write semantics as MongoDB."""

    def __init__(self):
        self.items: Dict[str, Dict[str, Any]] = {}
        self.fail_mark_processed = False
        self.fail_mark_terminal = False

    def add(self, item: Dict[str, Any]) -> Dict[str, Any]:
        self.items[item["_id"]] = dict(item)
        return self.items[item["_id"]]

    async def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        item = self.items.get(item_id)
        return dict(item) if item else None

    async def get_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        for item in self.items.values():
            if item["external_id"] == external_id:
                return dict(item)
        return None

    async def upsert_fixture_item(self, fixture_id: int) -> Dict[str, Any]:
        existing = await self.get_by_external_id(f"fixture-{fixture_id}")
        if existing:
            return existing
        now = get_utc_now()
        return dict(self.add({
            "_id": f"src_fixture{fixture_id}",
            "external_id": f"fixture-{fixture_id}",
            "kind": "fixture",
            "fixture_id": fixture_id,
            "categories": ["football"],
            "status": SourceItemStatus.FETCHED.value,
            "processed_content_id": None,
            "error_message": None,
            "processing_started_at": None,
            "created_at": now,
            "updated_at": now,
        }))

    async def claim(self, item_id: str) -> Optional[Dict[str, Any]]:
        # Yield first so concurrent runs interleave, then check-and-set with no await in between
        await asyncio.sleep(0)
        item = self.items.get(item_id)
        claimable = {status.value for status in CLAIMABLE_STATUSES}
        if item is None or item["status"] not in claimable:
            return None
        item["status"] = SourceItemStatus.PROCESSING.value
        item["processing_started_at"] = get_utc_now()
        item["error_message"] = None
        return dict(item)

    async def mark_processed(self, item_id: str, content_id: str) -> bool:
        if self.fail_mark_processed:
            raise ConnectionError("write failed")
        item = self.items.get(item_id)
        if item is None or item["status"] != SourceItemStatus.PROCESSING.value:
            return False
        item["status"] = SourceItemStatus.PROCESSED.value
        item["processed_content_id"] = content_id
        return True

    async def mark_terminal(self, item_id: str, status, error_message: Optional[str] = None) -> bool:
        if self.fail_mark_terminal:
            raise ConnectionError("write failed")
        item = self.items.get(item_id)
        if item is None or item["status"] != SourceItemStatus.PROCESSING.value:
            return False
        item["status"] = SourceItemStatus(status).value
        item["error_message"] = error_message
        return True

    async def find_fetched(self, limit: int = 10) -> List[Dict[str, Any]]:
        fetched = [
            dict(item) for item in self.items.values()
            if item["status"] == SourceItemStatus.FETCHED.value and item.get("kind", "article") == "article"
        ]
        fetched.sort(key=lambda item: item["pub_date"], reverse=True)
        return fetched[:limit]

    async def find_stale_processing(self, older_than_minutes: int) -> List[Dict[str, Any]]:
        cutoff = get_utc_now() - timedelta(minutes=older_than_minutes)
        return [
            dict(item) for item in self.items.values()
            if item["status"] == SourceItemStatus.PROCESSING.value
            and item.get("processing_started_at") is not None
            and item["processing_started_at"] < cutoff
        ]


class FakeContentRepository:
    """In-memory content_records with a unique slug."""

    def __init__(self):
        self.records: Dict[str, Dict[str, Any]] = {}

    async def create(self, record: Dict[str, Any]) -> str:
        if await self.slug_exists(record["slug"]):
            raise DuplicateSlugError(record["slug"])
        self.records[record["_id"]] = dict(record)
        return record["_id"]

    async def get(self, content_id: str) -> Optional[Dict[str, Any]]:
        return self.records.get(content_id)

    async def get_by_fixture_id(self, fixture_id: int) -> Optional[Dict[str, Any]]:
        for record in self.records.values():
            if record.get("original_fixture_id") == fixture_id:
                return record
        return None

    async def slug_exists(self, slug: str) -> bool:
        return any(record["slug"] == slug for record in self.records.values())


class FakePersonaRepository:
    def __init__(self, personas: List[Dict[str, Any]] = None):
        self.personas = {persona["_id"]: persona for persona in personas or []}

    async def get_active(self, persona_id: str) -> Optional[Dict[str, Any]]:
        persona = self.personas.get(persona_id)
        if persona and persona.get("is_active"):
            return persona
        return None


class FakeGenerator:
    """Scripted generation client: one response (or exception) per prompt role."""

    def __init__(self, responses: Dict[PromptRole, Any] = None):
        self.responses = responses or {
            PromptRole.TITLE: GENERATED_TITLE,
            PromptRole.CONTENT: GENERATED_BODY,
            PromptRole.PREDICTION_TITLE: "Derby preview: champions chase a third straight win",
            PromptRole.PREDICTION_CONTENT: GENERATED_BODY,
        }
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, role: PromptRole, values, directive: str = "") -> str:
        self.calls.append({"role": role, "values": dict(values), "directive": directive})
        await asyncio.sleep(0)
        response = self.responses[role]
        if isinstance(response, BaseException):
            raise response
        return response


class FakeImageProcessor:
    def __init__(self, url: Optional[str] = "https://cdn.test/fanskor-image.webp"):
        self.url = url
        self.calls: List[tuple] = []

    async def process(self, image_url: str, naming_hint: str) -> Optional[str]:
        self.calls.append((image_url, naming_hint))
        return self.url


class FakeStorage:
    """Create-once object storage."""

    def __init__(self):
        self.objects: Dict[str, tuple] = {}

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if key in self.objects:
            raise FileExistsError(key)
        self.objects[key] = (data, content_type)
        return f"https://cdn.test/{key}"


@pytest.fixture
def source_items():
    return FakeSourceItemRepository()


@pytest.fixture
def content_records():
    return FakeContentRepository()


@pytest.fixture
def personas():
    return FakePersonaRepository([
        {"_id": "persona_1", "name": "The Tactician", "tone_prompt": "analytical and calm", "is_active": True},
        {"_id": "persona_2", "name": "Retired Voice", "tone_prompt": "loud", "is_active": False},
    ])


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def image_processor():
    return FakeImageProcessor()


@pytest.fixture
def page_fetcher():
    fetcher = MagicMock()
    fetcher.fetch_text = AsyncMock(return_value=None)
    return fetcher


@pytest.fixture
def fixture_client():
    client = MagicMock()
    client.get_fixture_bundle = AsyncMock()
    return client


@pytest.fixture
def pipeline(source_items, content_records, personas, generator, image_processor, page_fetcher, fixture_client):
    """Pipeline wired to in-memory collaborators."""
    return ContentPipeline(
        source_items=source_items,
        content_records=content_records,
        personas=personas,
        generator=generator,
        image_processor=image_processor,
        article_variant=ArticleRewriteVariant(
            ContentAssembler(page_fetcher=page_fetcher, min_chars=100, max_chars=8000)
        ),
        fixture_variant=FixturePredictionVariant(fixture_client),
        default_author="AI Auto-Generator",
    )


@pytest.fixture
def sample_source_item():
    """Create sample source item data."""
    now = get_utc_now()
    return {
        "_id": "src_test001",
        "external_id": "ext-1001",
        "kind": "article",
        "title": "Team A beats Team B 3-1",
        "description": (
            "Team A came from behind to beat Team B 3-1 in a derby decided by two late goals "
            "from the bench."
        ),
        "content": None,
        "link": "https://news.example.com/team-a-beats-team-b",
        "image_url": "https://news.example.com/images/derby.jpg",
        "categories": ["sports", "football"],
        "pub_date": now,
        "status": "fetched",
        "processed_content_id": None,
        "error_message": None,
        "processing_started_at": None,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def stored_item(source_items, sample_source_item):
    """Sample source item stored in the fake repository."""
    return source_items.add(sample_source_item)


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()

    redis.lpush = AsyncMock(return_value=1)
    redis.rpop = AsyncMock(return_value=None)
    redis.llen = AsyncMock(return_value=0)
    redis.publish = AsyncMock(return_value=1)

    return redis


@pytest.fixture
def sample_fixture_payload():
    """Create a sample sports-provider fixture."""
    return {
        "fixture": {"id": 555},
        "league": {"id": 39, "name": "Premier League"},
        "teams": {
            "home": {"id": 1, "name": "Team A", "logo": "https://media.example.com/teams/1.png", "winner": None},
            "away": {"id": 2, "name": "Team B", "logo": "https://media.example.com/teams/2.png", "winner": None},
        },
    }
