import asyncio
import io
import itertools

import pytest
import pytest_asyncio

from discord_playback_engine.application.interfaces.audio_sink import AudioSink
from discord_playback_engine.application.interfaces.decoder import DecoderHandle, DecoderSpawner
from discord_playback_engine.application.interfaces.notifier import Notifier
from discord_playback_engine.application.interfaces.stream_extractor import StreamUrlExtractor
from discord_playback_engine.application.interfaces.transport import TransportConnection
from discord_playback_engine.config.settings import PlaybackSettings
from discord_playback_engine.domain.playback.entities import Item
from discord_playback_engine.domain.shared.exceptions import ResolutionFailureError

GUILD_ID = 123456789

# ============================================================================
# Fake collaborators
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeExtractor(StreamUrlExtractor):
    """Returns a fresh fake CDN URL per call; failures can be queued per source URL."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failures: dict[str, list[BaseException]] = {}
        self.gate: asyncio.Event | None = None
        self._counter = itertools.count(1)

    def fail(self, source_url: str, *errors: BaseException) -> None:
        self.failures.setdefault(source_url, []).extend(errors)

    async def extract(self, source_url: str) -> str:
        self.calls.append(source_url)
        if self.gate is not None:
            await self.gate.wait()
        pending = self.failures.get(source_url)
        if pending:
            raise pending.pop(0)
        return f"https://media.example/{next(self._counter)}/audio"


class FakeDecoderHandle(DecoderHandle):
    _pids = itertools.count(4000)

    def __init__(self, stream_url: str, start_offset_seconds: float) -> None:
        self.stream_url = stream_url
        self.start_offset_seconds = start_offset_seconds
        self.killed = False
        self._pid = next(self._pids)
        self._stdout = io.BytesIO(b"")
        self._returncode: int | None = None
        self._exited = asyncio.Event()

    @property
    def pid(self) -> int:
        return self._pid

    @property
    def stdout(self):
        return self._stdout

    @property
    def returncode(self) -> int | None:
        return self._returncode

    def kill(self) -> None:
        self.killed = True
        self.exit(-9)

    def exit(self, code: int) -> None:
        if self._returncode is None:
            self._returncode = code
            self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        assert self._returncode is not None
        return self._returncode


class FakeSpawner(DecoderSpawner):
    def __init__(self) -> None:
        self.handles: list[FakeDecoderHandle] = []
        self.failures: list[BaseException] = []

    async def spawn(self, stream_url: str, start_offset_seconds: float = 0.0) -> DecoderHandle:
        if self.failures:
            raise self.failures.pop(0)
        handle = FakeDecoderHandle(stream_url, start_offset_seconds)
        self.handles.append(handle)
        return handle

    @property
    def alive(self) -> list[FakeDecoderHandle]:
        return [h for h in self.handles if h.returncode is None]


class FakeSink(AudioSink):
    """Synchronous sink; ``finish()`` simulates the end of a play-through."""

    def __init__(self, stop_error: BaseException | None = None) -> None:
        self.streams: list[object] = []
        self.callbacks: list = []
        self.paused = False
        self.stop_calls = 0
        self.stop_error = stop_error
        self._on_end = None

    def play(self, stream, on_end) -> None:
        if self._on_end is not None:
            raise RuntimeError("Already playing audio.")
        self._on_end = on_end
        self.streams.append(stream)
        self.callbacks.append(on_end)
        self.paused = False

    def pause(self) -> bool:
        if self._on_end is None or self.paused:
            return False
        self.paused = True
        return True

    def resume(self) -> bool:
        if not self.paused:
            return False
        self.paused = False
        return True

    def stop(self) -> None:
        self.stop_calls += 1
        self.finish(self.stop_error)

    def is_active(self) -> bool:
        return self._on_end is not None

    def finish(self, error: BaseException | None = None) -> None:
        on_end, self._on_end = self._on_end, None
        self.paused = False
        if on_end is not None:
            on_end(error)


class FakeTransport(TransportConnection):
    def __init__(self, ready: bool = True) -> None:
        self.ready = ready
        self.connected = False
        self.disconnect_calls = 0
        self.on_disconnected = None

    async def wait_ready(self, timeout: float) -> None:
        if not self.ready:
            raise TimeoutError
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    def set_on_disconnected(self, callback) -> None:
        self.on_disconnected = callback

    async def drop(self) -> None:
        """Simulate the remote end closing the connection."""
        self.connected = False
        if self.on_disconnected is not None:
            await self.on_disconnected()


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False) -> None:
        self.notifications: list = []
        self.fail = fail

    async def notify(self, notification) -> None:
        if self.fail:
            raise RuntimeError("channel gone")
        self.notifications.append(notification)

    @property
    def kinds(self) -> list:
        return [n.kind for n in self.notifications]


def make_item(title: str = "Test Item", url: str | None = None, **kwargs) -> Item:
    slug = title.lower().replace(" ", "-")
    return Item(title=title, source_url=url or f"https://www.youtube.com/watch?v={slug}", **kwargs)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def spawner():
    return FakeSpawner()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def playback_settings():
    return PlaybackSettings(resolution_retry_backoff_seconds=0.0)


@pytest_asyncio.fixture
async def engine(extractor, spawner, notifier, playback_settings, clock):
    from discord_playback_engine.application.services.playback_service import PlaybackEngine

    engine = PlaybackEngine(
        extractor=extractor,
        spawner=spawner,
        notifier=notifier,
        settings=playback_settings,
        clock=clock,
    )
    yield engine
    await engine.close()


@pytest_asyncio.fixture
async def joined_engine(engine, transport, sink):
    """Engine with a ready transport and sink bound to GUILD_ID."""
    await engine.join(GUILD_ID, transport, sink)
    return engine


@pytest.fixture
def resolution_failure():
    def _make(url: str = "https://www.youtube.com/watch?v=x") -> ResolutionFailureError:
        return ResolutionFailureError(url, "HTTP Error 403: Forbidden")

    return _make
