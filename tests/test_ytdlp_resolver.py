"""Tests for the yt-dlp item resolver and stream extractor."""

from unittest.mock import MagicMock, patch

import pytest

from discord_playback_engine.config.settings import AudioSettings
from discord_playback_engine.domain.playback.value_objects import ItemSource
from discord_playback_engine.domain.shared.exceptions import ResolutionFailureError
from discord_playback_engine.infrastructure.audio.models import YtDlpItemInfo
from discord_playback_engine.infrastructure.audio.ytdlp_resolver import (
    YtDlpItemResolver,
    YtDlpStreamExtractor,
)

YOUTUBE_DL = "discord_playback_engine.infrastructure.audio.ytdlp_resolver.YoutubeDL"

VIDEO_URL = "https://www.youtube.com/watch?v=abc123"

VIDEO_INFO = {
    "id": "abc123",
    "title": "  Test Song  ",
    "webpage_url": VIDEO_URL,
    "url": "https://rr1.googlevideo.example/videoplayback?id=abc123",
    "duration": 212,
    "is_live": False,
    "extractor_key": "Youtube",
}


def _ydl(result=None, side_effect=None) -> MagicMock:
    """Patchable YoutubeDL class whose context-managed instance returns *result*."""
    ydl_cls = MagicMock()
    ydl = ydl_cls.return_value.__enter__.return_value
    if side_effect is not None:
        ydl.extract_info.side_effect = side_effect
    else:
        ydl.extract_info.return_value = result
    return ydl_cls


def _extract_calls(ydl_cls: MagicMock) -> list:
    return ydl_cls.return_value.__enter__.return_value.extract_info.call_args_list


# =============================================================================
# Model parsing
# =============================================================================


class TestYtDlpItemInfo:
    def test_garbage_is_coerced(self):
        info = YtDlpItemInfo.model_validate(
            {"title": "   ", "duration": "n/a", "is_live": None, "url": "", "extra": object()}
        )

        assert info.title == "Unknown Title"
        assert info.duration is None
        assert info.is_live is False
        assert info.url is None

    def test_negative_duration_dropped(self):
        assert YtDlpItemInfo.model_validate({"duration": -4}).duration is None

    def test_long_title_truncated(self):
        assert len(YtDlpItemInfo.model_validate({"title": "x" * 900}).title) == 500

    def test_provider_key_falls_back_to_ie_key(self):
        assert YtDlpItemInfo.model_validate({"ie_key": "Twitch"}).provider_key == "Twitch"


# =============================================================================
# Item resolver
# =============================================================================


class TestYtDlpItemResolver:
    @pytest.fixture
    def resolver(self):
        return YtDlpItemResolver(AudioSettings())

    def test_url_and_playlist_detection(self, resolver):
        assert resolver.is_url(VIDEO_URL)
        assert resolver.is_url("www.example.com/track")
        assert not resolver.is_url("never gonna give you up")
        assert resolver.is_playlist("https://www.youtube.com/playlist?list=PL123")
        assert resolver.is_playlist("https://www.youtube.com/watch?v=a&list=PL123")
        assert resolver.is_playlist("https://soundcloud.com/artist/sets/album")
        assert not resolver.is_playlist(VIDEO_URL)

    @pytest.mark.asyncio
    async def test_resolve_single_url(self, resolver):
        with patch(YOUTUBE_DL, _ydl(VIDEO_INFO)):
            items = await resolver.resolve(VIDEO_URL, requested_by="alice")

        assert len(items) == 1
        item = items[0]
        assert item.title == "Test Song"
        assert item.source_url == VIDEO_URL
        assert item.source is ItemSource.YOUTUBE
        assert item.duration_seconds == 212
        assert item.requested_by == "alice"
        # Direct media URLs are never stored at resolve time
        assert item.cached_stream_url is None

    @pytest.mark.asyncio
    async def test_resolve_caches_metadata(self, resolver):
        ydl_cls = _ydl(VIDEO_INFO)
        with patch(YOUTUBE_DL, ydl_cls):
            await resolver.resolve(VIDEO_URL)
            await resolver.resolve(VIDEO_URL)

        assert len(_extract_calls(ydl_cls)) == 1

    @pytest.mark.asyncio
    async def test_resolve_search_takes_first_result(self, resolver):
        data = {"entries": [VIDEO_INFO, {**VIDEO_INFO, "id": "zzz", "title": "Other"}]}
        ydl_cls = _ydl(data)
        with patch(YOUTUBE_DL, ydl_cls):
            items = await resolver.resolve("test song")

        assert [i.title for i in items] == ["Test Song"]
        assert _extract_calls(ydl_cls)[0].args[0] == "ytsearch1:test song"

    @pytest.mark.asyncio
    async def test_resolve_playlist_uses_flat_extraction(self, resolver):
        data = {
            "entries": [
                {"id": "a1", "title": "First", "url": "https://www.youtube.com/watch?v=a1"},
                {"id": "b2", "title": "Second", "ie_key": "Youtube"},
                "not-a-dict",
            ]
        }
        ydl_cls = _ydl(data)
        url = "https://www.youtube.com/playlist?list=PL123"
        with patch(YOUTUBE_DL, ydl_cls):
            items = await resolver.resolve(url)

        assert [i.title for i in items] == ["First", "Second"]
        assert items[1].source_url == "https://www.youtube.com/watch?v=b2"
        params = ydl_cls.call_args.kwargs["params"]
        assert params["extract_flat"] == "in_playlist"
        assert params["noplaylist"] is False

    @pytest.mark.asyncio
    async def test_live_and_overlong_durations_are_dropped(self, resolver):
        data = {
            "entries": [
                {**VIDEO_INFO, "title": "Live", "is_live": True, "duration": 100},
                {**VIDEO_INFO, "title": "Marathon", "duration": 100_000},
            ]
        }
        with patch(YOUTUBE_DL, _ydl(data)):
            items = await resolver.resolve("https://www.youtube.com/playlist?list=PL9")

        assert items[0].is_live is True
        assert items[0].duration_seconds is None
        assert items[1].duration_seconds is None

    @pytest.mark.asyncio
    async def test_entries_without_url_are_skipped(self, resolver):
        data = {"entries": [{"title": "Nowhere", "extractor_key": "Generic"}]}
        with patch(YOUTUBE_DL, _ydl(data)):
            assert await resolver.resolve("https://example.com/playlist?list=1") == []

    @pytest.mark.asyncio
    async def test_extraction_errors_resolve_to_nothing(self, resolver):
        with patch(YOUTUBE_DL, _ydl(side_effect=RuntimeError("HTTP Error 404"))):
            assert await resolver.resolve(VIDEO_URL) == []
            assert await resolver.resolve("some search") == []

    @pytest.mark.asyncio
    async def test_blank_query(self, resolver):
        assert await resolver.resolve("   ") == []


# =============================================================================
# Stream extractor
# =============================================================================


class TestYtDlpStreamExtractor:
    @pytest.fixture
    def extractor(self):
        return YtDlpStreamExtractor(AudioSettings(ytdlp_format="bestaudio"))

    @pytest.mark.asyncio
    async def test_extract_returns_direct_url(self, extractor):
        ydl_cls = _ydl(VIDEO_INFO)
        with patch(YOUTUBE_DL, ydl_cls):
            url = await extractor.extract(VIDEO_URL)

        assert url == VIDEO_INFO["url"]
        assert ydl_cls.call_args.kwargs["params"]["format"] == "bestaudio"

    @pytest.mark.asyncio
    async def test_extract_is_not_cached(self, extractor):
        ydl_cls = _ydl(VIDEO_INFO)
        with patch(YOUTUBE_DL, ydl_cls):
            await extractor.extract(VIDEO_URL)
            await extractor.extract(VIDEO_URL)

        assert len(_extract_calls(ydl_cls)) == 2

    @pytest.mark.asyncio
    async def test_falls_back_to_best_audio_only_format(self, extractor):
        data = {
            "title": "Song",
            "formats": [
                {"url": "https://cdn.example/muxed", "acodec": "mp4a", "vcodec": "avc1"},
                {"url": "https://cdn.example/low", "acodec": "opus", "vcodec": "none"},
                {"url": "https://cdn.example/high", "acodec": "opus", "vcodec": "none"},
                {"url": "https://cdn.example/video", "acodec": "none", "vcodec": "vp9"},
            ],
        }
        with patch(YOUTUBE_DL, _ydl(data)):
            assert await extractor.extract(VIDEO_URL) == "https://cdn.example/high"

    @pytest.mark.asyncio
    async def test_falls_back_to_muxed_format(self, extractor):
        data = {
            "title": "Song",
            "formats": [{"url": "https://cdn.example/muxed", "acodec": "mp4a", "vcodec": "avc1"}],
        }
        with patch(YOUTUBE_DL, _ydl(data)):
            assert await extractor.extract(VIDEO_URL) == "https://cdn.example/muxed"

    @pytest.mark.asyncio
    async def test_no_stream_url(self, extractor):
        with patch(YOUTUBE_DL, _ydl({"title": "Song", "formats": []})):
            with pytest.raises(ResolutionFailureError, match="No direct stream URL"):
                await extractor.extract(VIDEO_URL)

    @pytest.mark.asyncio
    async def test_extractor_returning_none(self, extractor):
        with patch(YOUTUBE_DL, _ydl(None)):
            with pytest.raises(ResolutionFailureError):
                await extractor.extract(VIDEO_URL)

    @pytest.mark.asyncio
    async def test_extractor_error_is_wrapped(self, extractor):
        with patch(YOUTUBE_DL, _ydl(side_effect=RuntimeError("HTTP Error 403: Forbidden"))):
            with pytest.raises(ResolutionFailureError, match="403") as exc_info:
                await extractor.extract(VIDEO_URL)

        assert exc_info.value.source_url == VIDEO_URL
