"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the playback engine
and its external collaborators. These are the "ports" in
hexagonal architecture.
"""

from discord_playback_engine.application.interfaces.audio_sink import AudioSink, SinkEndCallback
from discord_playback_engine.application.interfaces.decoder import DecoderHandle, DecoderSpawner
from discord_playback_engine.application.interfaces.item_resolver import ItemResolver
from discord_playback_engine.application.interfaces.notifier import Notifier
from discord_playback_engine.application.interfaces.stream_extractor import StreamUrlExtractor
from discord_playback_engine.application.interfaces.transport import TransportConnection

__all__ = [
    "AudioSink",
    "DecoderHandle",
    "DecoderSpawner",
    "ItemResolver",
    "Notifier",
    "SinkEndCallback",
    "StreamUrlExtractor",
    "TransportConnection",
]
