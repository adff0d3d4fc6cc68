"""Named cache entry points for the generation routes.

Each helper pins a key prefix, the parameter names that make up the
fingerprint, and how long the artifact stays valid. Parameter names keep the
camelCase of the generation API's JSON bodies. Values are rendered by Python's
json module with sorted nested keys, so fingerprints are stable within this
process but are not byte-identical to keys built by other clients.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from .service import CacheApplicationService

logger = logging.getLogger(__name__)

T = TypeVar("T")

HOUR = 60 * 60


class CachePrefix(str, enum.Enum):
    CHARACTER_REF = "character_ref"
    STORY_ANALYSIS = "story_analysis"
    STORY_BREAKDOWN = "story_breakdown"
    PANEL_IMAGE = "panel_image"


CHARACTER_REF_TTL = 2 * HOUR
STORY_ANALYSIS_TTL = 1 * HOUR
STORY_BREAKDOWN_TTL = 1 * HOUR
PANEL_IMAGE_TTL = 4 * HOUR


@dataclass(frozen=True)
class CachedResult(Generic[T]):
    value: T
    cached: bool


@dataclass(frozen=True)
class CacheHelpers:
    service: CacheApplicationService

    # character reference sheets

    def cache_character_ref(
        self, characters: Sequence[Any], setting: str, style: str, data: Any
    ) -> None:
        self.service.set(
            CachePrefix.CHARACTER_REF.value,
            {"characters": characters, "setting": setting, "style": style},
            data,
            ttl=CHARACTER_REF_TTL,
        )

    def get_cached_character_ref(
        self, characters: Sequence[Any], setting: str, style: str
    ) -> Optional[Any]:
        return self.service.get(
            CachePrefix.CHARACTER_REF.value,
            {"characters": characters, "setting": setting, "style": style},
        )

    # story analysis

    def cache_story_analysis(self, story: str, style: str, data: Any) -> None:
        self.service.set(
            CachePrefix.STORY_ANALYSIS.value,
            {"story": story, "style": style},
            data,
            ttl=STORY_ANALYSIS_TTL,
        )

    def get_cached_story_analysis(self, story: str, style: str) -> Optional[Any]:
        return self.service.get(
            CachePrefix.STORY_ANALYSIS.value, {"story": story, "style": style}
        )

    # story breakdown

    def cache_story_breakdown(self, story_analysis: Any, style: str, data: Any) -> None:
        self.service.set(
            CachePrefix.STORY_BREAKDOWN.value,
            {"storyAnalysis": story_analysis, "style": style},
            data,
            ttl=STORY_BREAKDOWN_TTL,
        )

    def get_cached_story_breakdown(self, story_analysis: Any, style: str) -> Optional[Any]:
        return self.service.get(
            CachePrefix.STORY_BREAKDOWN.value,
            {"storyAnalysis": story_analysis, "style": style},
        )

    # panel images

    @staticmethod
    def _panel_params(
        panel_number: int,
        description: str,
        characters: Sequence[Any],
        style: str,
        image_size: Any,
    ) -> dict[str, Any]:
        return {
            "panelNumber": panel_number,
            "description": description,
            "characters": characters,
            "style": style,
            "imageSize": image_size,
        }

    def cache_panel_image(
        self,
        panel_number: int,
        description: str,
        characters: Sequence[Any],
        style: str,
        image_size: Any,
        data: Any,
    ) -> None:
        self.service.set(
            CachePrefix.PANEL_IMAGE.value,
            self._panel_params(panel_number, description, characters, style, image_size),
            data,
            ttl=PANEL_IMAGE_TTL,
        )

    def get_cached_panel_image(
        self,
        panel_number: int,
        description: str,
        characters: Sequence[Any],
        style: str,
        image_size: Any,
    ) -> Optional[Any]:
        return self.service.get(
            CachePrefix.PANEL_IMAGE.value,
            self._panel_params(panel_number, description, characters, style, image_size),
        )

    # lookup, generate on miss, store

    async def panel_image(
        self,
        panel_number: int,
        description: str,
        characters: Sequence[Any],
        style: str,
        image_size: Any,
        generate: Callable[[], Awaitable[Optional[str]]],
    ) -> CachedResult[Optional[str]]:
        """Return the cached panel image, or generate one and cache it.

        ``generate`` yields a URL, a base64 payload or a proxy URL; an empty
        result is returned as-is and not cached.
        """
        cached = self.get_cached_panel_image(
            panel_number, description, characters, style, image_size
        )
        if cached:
            logger.info(
                "Returning cached panel image",
                extra={"cache": {"cached": True, "panel_number": panel_number}},
            )
            return CachedResult(cached, cached=True)

        image = await generate()
        if image:
            self.cache_panel_image(
                panel_number, description, characters, style, image_size, image
            )
            logger.info(
                "Cached panel image for future use",
                extra={"cache": {"panel_number": panel_number}},
            )
        return CachedResult(image, cached=False)

    async def character_refs(
        self,
        characters: Sequence[Any],
        setting: str,
        style: str,
        generate: Callable[[], Awaitable[list[Any]]],
    ) -> CachedResult[list[Any]]:
        cached = self.get_cached_character_ref(characters, setting, style)
        if cached and isinstance(cached, list):
            logger.info(
                "Returning cached character references",
                extra={"cache": {"cached": True, "characters_count": len(cached)}},
            )
            return CachedResult(cached, cached=True)

        references = await generate()
        if references:
            self.cache_character_ref(characters, setting, style, references)
            logger.info("Cached character references for future use")
        return CachedResult(references, cached=False)
