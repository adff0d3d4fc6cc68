import pytest

from manga_cache.application.helpers import (
    CHARACTER_REF_TTL,
    PANEL_IMAGE_TTL,
    STORY_ANALYSIS_TTL,
    STORY_BREAKDOWN_TTL,
    CacheHelpers,
    CachePrefix,
)
from manga_cache.application.service import CacheApplicationService
from manga_cache.infrastructure.memory_store import CacheStore


pytestmark = [pytest.mark.unit]

CHARACTERS = [{"name": "Li", "description": "young swordsman"}]
IMAGE_SIZE = {"width": 1024, "height": 576, "aspectRatio": "16:9"}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    cache_store = CacheStore(clock=clock, start_cleaner=False)
    yield cache_store
    cache_store.stop()


@pytest.fixture
def service(store):
    return CacheApplicationService(store)


@pytest.fixture
def helpers(service):
    return CacheHelpers(service)


def test_ttls_per_artifact():
    assert CHARACTER_REF_TTL == 2 * 60 * 60
    assert STORY_ANALYSIS_TTL == 60 * 60
    assert STORY_BREAKDOWN_TTL == 60 * 60
    assert PANEL_IMAGE_TTL == 4 * 60 * 60


def test_panel_image_round_trip(helpers):
    helpers.cache_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, "IMG_DATA")

    assert helpers.get_cached_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE) == "IMG_DATA"


@pytest.mark.parametrize(
    "changed",
    [
        {"panel_number": 2},
        {"description": "other"},
        {"characters": [{"name": "Mei"}]},
        {"style": "comic"},
        {"image_size": {"width": 512, "height": 512, "aspectRatio": "1:1"}},
    ],
)
def test_panel_image_any_changed_param_misses(helpers, changed):
    helpers.cache_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, "IMG_DATA")
    args = {
        "panel_number": 1,
        "description": "desc",
        "characters": CHARACTERS,
        "style": "manga",
        "image_size": IMAGE_SIZE,
    }
    args.update(changed)

    assert helpers.get_cached_panel_image(**args) is None


def test_panel_image_key_matches_raw_params(helpers, service):
    helpers.cache_panel_image(1, "hero enters", [{"name": "Li"}], "manga", {"w": 1024, "h": 576}, "https://cdn/img1.jpg")

    params = {
        "imageSize": {"h": 576, "w": 1024},
        "style": "manga",
        "characters": [{"name": "Li"}],
        "description": "hero enters",
        "panelNumber": 1,
    }
    assert service.get("panel_image", params) == "https://cdn/img1.jpg"


def test_panel_image_expires_after_four_hours(helpers, clock):
    helpers.cache_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, "IMG_DATA")

    clock.advance(PANEL_IMAGE_TTL)
    assert helpers.get_cached_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE) == "IMG_DATA"

    clock.advance(1)
    assert helpers.get_cached_panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE) is None


def test_character_ref_round_trip_and_expiry(helpers, clock):
    refs = [{"name": "Li", "image": "data:image/png;base64,AAAA"}]
    helpers.cache_character_ref(CHARACTERS, "mountain village", "manga", refs)

    assert helpers.get_cached_character_ref(CHARACTERS, "mountain village", "manga") == refs
    assert helpers.get_cached_character_ref(CHARACTERS, "city", "manga") is None

    clock.advance(CHARACTER_REF_TTL + 1)
    assert helpers.get_cached_character_ref(CHARACTERS, "mountain village", "manga") is None


def test_story_analysis_round_trip_and_expiry(helpers, clock):
    analysis = {"characters": CHARACTERS, "setting": {"place": "village"}}
    helpers.cache_story_analysis("Once upon a time", "manga", analysis)

    assert helpers.get_cached_story_analysis("Once upon a time", "manga") == analysis
    assert helpers.get_cached_story_analysis("Once upon a time", "comic") is None

    clock.advance(STORY_ANALYSIS_TTL + 1)
    assert helpers.get_cached_story_analysis("Once upon a time", "manga") is None


def test_story_breakdown_round_trip(helpers, service):
    analysis = {"characters": CHARACTERS}
    breakdown = {"panels": [{"panelNumber": 1, "description": "desc"}]}
    helpers.cache_story_breakdown(analysis, "manga", breakdown)

    assert helpers.get_cached_story_breakdown(analysis, "manga") == breakdown
    assert service.get(CachePrefix.STORY_BREAKDOWN.value, {"storyAnalysis": analysis, "style": "manga"}) == breakdown


def test_prefixes_keep_artifacts_apart(helpers):
    helpers.cache_story_analysis("story", "manga", {"kind": "analysis"})

    assert helpers.get_cached_story_breakdown("story", "manga") is None


@pytest.mark.asyncio
async def test_panel_image_generates_on_miss_then_serves_from_cache(helpers):
    calls = []

    async def generate():
        calls.append(1)
        return "data:image/png;base64,IMG"

    first = await helpers.panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, generate)
    second = await helpers.panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, generate)

    assert first.value == "data:image/png;base64,IMG"
    assert first.cached is False
    assert second.value == first.value
    assert second.cached is True
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_panel_image_empty_result_is_not_cached(helpers, store):
    async def generate():
        return None

    result = await helpers.panel_image(1, "desc", CHARACTERS, "manga", IMAGE_SIZE, generate)

    assert result.value is None
    assert result.cached is False
    assert store.stats().total_items == 0


@pytest.mark.asyncio
async def test_character_refs_ignore_non_list_cache_value(helpers):
    helpers.cache_character_ref(CHARACTERS, "village", "manga", {"unexpected": True})

    async def generate():
        return [{"name": "Li", "image": "url"}]

    result = await helpers.character_refs(CHARACTERS, "village", "manga", generate)

    assert result.cached is False
    assert helpers.get_cached_character_ref(CHARACTERS, "village", "manga") == [{"name": "Li", "image": "url"}]


@pytest.mark.asyncio
async def test_character_refs_empty_result_is_not_cached(helpers, store):
    async def generate():
        return []

    result = await helpers.character_refs(CHARACTERS, "village", "manga", generate)

    assert result.value == []
    assert store.stats().total_items == 0
