"""ItemResolver and StreamUrlExtractor implementations using yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from discord_playback_engine.application.interfaces.item_resolver import ItemResolver
from discord_playback_engine.application.interfaces.stream_extractor import StreamUrlExtractor
from discord_playback_engine.config.settings import AudioSettings
from discord_playback_engine.domain.playback.entities import Item
from discord_playback_engine.domain.playback.value_objects import ItemSource
from discord_playback_engine.domain.shared.exceptions import ResolutionFailureError
from discord_playback_engine.domain.shared.messages import ErrorMessages, LogTemplates

from .models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    YtDlpItemInfo,
    YtDlpOpts,
)

logger = logging.getLogger(__name__)

MAX_DURATION_SECONDS: Final[float] = 86_400.0

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]

PLAYLIST_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"[?&]list="),
    re.compile(r"/playlist\?"),
    re.compile(r"/sets/"),
]

YOUTUBE_WATCH_URL: Final[str] = "https://www.youtube.com/watch?v={id}"


def _parse_info(data: dict[str, Any]) -> YtDlpItemInfo:
    """Parse a raw yt-dlp info dict; extra fields are dropped by the model."""
    return YtDlpItemInfo.model_validate(data)


class _YtDlpClient:
    """Shared yt-dlp option handling."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format or "bestaudio/best")

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self) -> YtDlpOpts:
        return self._get_opts(noplaylist=False, extract_flat="in_playlist")

    def _extract(self, url: str, opts: YtDlpOpts) -> dict[str, Any] | None:
        with YoutubeDL(params=cast(Any, opts.model_dump())) as ydl:
            data = ydl.extract_info(url, download=False)
        return dict(data) if isinstance(data, dict) else None


class YtDlpItemResolver(_YtDlpClient, ItemResolver):
    """Turns URLs, playlist URLs and free-text searches into queueable items.

    Metadata lookups are cached per resolver for ``CACHE_TTL`` seconds; direct
    stream URLs are never resolved here.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        super().__init__(settings)
        self._info_cache: dict[str, CacheEntry] = {}

    def _info_to_item(self, info: YtDlpItemInfo, requested_by: str | None) -> Item | None:
        source_url = self._canonical_url(info)
        if not source_url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            return None

        duration = info.duration
        if info.is_live or (duration is not None and duration > MAX_DURATION_SECONDS):
            duration = None

        return Item(
            title=info.title,
            source_url=source_url,
            source=ItemSource.from_extractor(info.provider_key),
            is_live=info.is_live,
            duration_seconds=duration,
            requested_by=requested_by or None,
        )

    @staticmethod
    def _canonical_url(info: YtDlpItemInfo) -> str | None:
        for candidate in (info.webpage_url, info.original_url, info.url):
            if candidate and candidate.startswith(("http://", "https://")):
                return candidate
        if info.id and "youtube" in (info.provider_key or "").lower():
            return YOUTUBE_WATCH_URL.format(id=info.id)
        return None

    def _extract_info_sync(self, url: str) -> YtDlpItemInfo | None:
        now = time.time()
        cached = self._info_cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._info_cache.pop(url, None)

        try:
            data = self._extract(url, self._get_opts())
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        result = _parse_info(data) if data is not None else None
        self._info_cache[url] = CacheEntry(info=result, cached_at=now)

        if len(self._info_cache) > CACHE_MAX_SIZE:
            expired = [
                k for k, entry in self._info_cache.items() if now - entry.cached_at >= CACHE_TTL
            ]
            for k in expired:
                self._info_cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

        return result

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpItemInfo]:
        try:
            data = self._extract(f"ytsearch{limit}:{query}", self._get_opts())
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []
        return self._entries(data)

    def _extract_playlist_sync(self, url: str) -> list[YtDlpItemInfo]:
        try:
            data = self._extract(url, self._get_playlist_opts())
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            return []
        return self._entries(data)

    @staticmethod
    def _entries(data: dict[str, Any] | None) -> list[YtDlpItemInfo]:
        if data is None:
            return []
        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []
        return [_parse_info(dict(e)) for e in entries if isinstance(e, dict)]

    async def resolve(self, query: str, requested_by: str | None = None) -> list[Item]:
        query = query.strip()
        if not query:
            return []

        if self.is_url(query) and self.is_playlist(query):
            # Flat extraction: stream URLs are resolved lazily at play time
            infos = await asyncio.to_thread(self._extract_playlist_sync, query)
        elif self.is_url(query):
            info = await asyncio.to_thread(self._extract_info_sync, query)
            infos = [info] if info else []
        else:
            infos = (await asyncio.to_thread(self._search_sync, query, 1))[:1]

        items: list[Item] = []
        for info in infos:
            item = self._info_to_item(info, requested_by)
            if item is not None:
                items.append(item)
        return items

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    def is_playlist(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in PLAYLIST_PATTERNS)


class YtDlpStreamExtractor(_YtDlpClient, StreamUrlExtractor):
    """Resolves a canonical source URL to a short-lived direct media URL.

    Uncached on purpose: retries after a stream abort must get a fresh URL.
    """

    async def extract(self, source_url: str) -> str:
        timeout = self._settings.extract_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                return await asyncio.to_thread(self._extract_stream_sync, source_url)
        except TimeoutError as e:
            raise ResolutionFailureError(
                source_url, f"Stream extraction timed out after {timeout}s"
            ) from e

    def _extract_stream_sync(self, source_url: str) -> str:
        try:
            data = self._extract(source_url, self._get_opts())
        except Exception as e:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, source_url)
            raise ResolutionFailureError(source_url, str(e)) from e

        if data is None:
            raise ResolutionFailureError(
                source_url, ErrorMessages.EXTRACTOR_RETURNED_NONE.format(url=source_url)
            )

        info = _parse_info(data)
        stream_url = info.url or self._stream_from_formats(info.formats)
        if not stream_url or not stream_url.startswith(("http://", "https://")):
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, source_url)
            raise ResolutionFailureError(
                source_url, ErrorMessages.NO_STREAM_URL.format(url=source_url)
            )
        return stream_url

    @staticmethod
    def _stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        """Prefer the last audio-only format (yt-dlp sorts worst to best)."""
        audio_only = [f for f in formats if f.url and f.acodec != "none" and f.vcodec == "none"]
        if audio_only:
            return audio_only[-1].url
        with_audio = [f for f in formats if f.url and f.acodec != "none"]
        if with_audio:
            return with_audio[-1].url
        return None
