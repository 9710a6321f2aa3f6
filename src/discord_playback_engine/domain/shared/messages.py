"""Centralized message constants for error messages, log templates, and notifications."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Session Errors
    NOTHING_PLAYING = "Nothing is playing"
    CANNOT_SEEK_LIVE = "Cannot seek within a live stream"
    INVALID_SEEK_DELTA = "Seek delta must be a finite, non-zero number of seconds"
    HISTORY_EMPTY = "There is no previous item in history"
    INVALID_QUEUE_POSITION = "Queue position {position} is out of range (1-{maximum})"

    # Resolution Errors
    NO_STREAM_URL = "No direct stream URL found for {url}"
    EXTRACTOR_RETURNED_NONE = "Extractor returned no info for {url}"

    # Decoder Errors
    DECODER_NOT_FOUND = "Decoder executable '{executable}' was not found"
    DECODER_SPAWN_FAILED = "Failed to start decoder: {error}"
    DECODER_HINT = "Install FFmpeg or set AUDIO__FFMPEG_EXECUTABLE to its full path"

    # Transport Errors
    SINK_NOT_ATTACHED = "No audio sink attached to session {session_id}"

    # Settings Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Session Registry
    SESSION_CREATED = "Created playback session %s"
    SESSION_REMOVED = "Removed playback session %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued %d item(s) in session %s (pending=%d)"
    QUEUE_ENQUEUED_NEXT = "Enqueued %d item(s) to play next in session %s"
    QUEUE_EMPTY = "Queue drained in session %s"
    QUEUE_REMOVED = "Removed '%s' from queue in session %s"
    QUEUE_MOVED = "Moved item from %s to %s in session %s"
    QUEUE_CLEARED = "Cleared %d pending item(s) in session %s"
    QUEUE_SKIPPED_TO = "Dropped %d pending item(s) skipping to position %s in session %s"

    # Advance
    ADVANCE_IGNORED = "advance() ignored in session %s (playing=%s transitioning=%s)"
    ADVANCE_NO_SINK = "advance() deferred in session %s: no sink attached"
    ADVANCE_INVALID_URL = "Dropping '%s' in session %s: %s"
    ADVANCE_USING_PREFETCH = "Using prefetched stream URL for '%s'"
    ADVANCE_RESOLVE_RETRY = "Resolution failed for '%s' in session %s (attempt %d/%d): %s"
    ADVANCE_RESOLVE_ABANDONED = "Abandoning '%s' in session %s after %d resolution attempts"
    ADVANCE_CACHE_EXPIRED = "Prefetched stream URL for '%s' expired, resolving again"

    # Playback
    PLAYBACK_STARTED = "Started playing '%s' in session %s (offset=%ss)"
    PLAYBACK_FINISHED = "Finished '%s' in session %s"
    PLAYBACK_PAUSED = "Paused playback in session %s"
    PLAYBACK_RESUMED = "Resumed playback in session %s"
    PLAYBACK_STOPPED = "Stopped playback in session %s"
    PLAYBACK_SKIPPED = "Skipped '%s' in session %s"
    PLAYBACK_SEEK = "Seeking '%s' to %.1fs in session %s"
    PLAYBACK_SEEK_PAST_END = "Seek target %.1fs past duration of '%s', skipping"
    PLAYBACK_PREVIOUS = "Going back to '%s' in session %s"
    PLAYBACK_SINK_ERROR = "Sink error in session %s (%s): %s"
    PLAYBACK_UNKNOWN_FAULT = "Unclassified playback fault in session %s: %r"
    PLAYBACK_STREAM_RETRY = "Stream aborted for '%s' in session %s, retrying (%d/%d)"
    PLAYBACK_STREAM_ABANDONED = "Abandoning '%s' in session %s after %d stream aborts"
    PLAYBACK_STALE_EVENT = "Ignoring stale sink event in session %s (generation %d != %d)"
    PLAYBACK_SINK_PLAY_FAILED = "Sink refused playback in session %s: %s"

    # Decoder
    DECODER_SPAWNED = "Spawned decoder pid=%s for session %s"
    DECODER_KILLED = "Killed decoder pid=%s for session %s"
    DECODER_EXITED = "Decoder pid=%s exited with code %s in session %s"
    DECODER_STALE_EXIT = "Ignoring exit of superseded decoder pid=%s in session %s"
    DECODER_KILL_ERROR = "Error killing decoder process: %s"

    # Prefetch
    PREFETCH_STARTED = "Prefetching stream URL for '%s'"
    PREFETCH_STORED = "Prefetched stream URL for '%s'"
    PREFETCH_STALE = "Discarding prefetch for '%s': no longer next in queue"
    PREFETCH_FAILED = "Prefetch failed for '%s': %s"

    # Idle Teardown
    IDLE_SCHEDULED = "Idle teardown for session %s scheduled in %ss"
    IDLE_CANCELLED = "Idle teardown for session %s cancelled"
    IDLE_FIRED_BUSY = "Idle teardown for session %s skipped: session is active again"
    IDLE_TEARDOWN = "Tearing down idle session %s"

    # Transport / Voice
    TRANSPORT_READY = "Transport ready for session %s"
    TRANSPORT_TIMEOUT = "Transport for session %s not ready after %ss"
    TRANSPORT_DISCONNECTED = "Transport disconnected for session %s, resetting"
    TRANSPORT_DISCONNECT_ERROR = "Error disconnecting transport for session %s"
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CLIENT_ERROR = "Voice client error: %r"
    VOICE_AFTER_CALLBACK = "Voice source ended in guild %s (error: %s)"

    # Notifications
    NOTIFY_FAILED = "Notification %s failed for session %s: %r"

    # Extractor / Resolver
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "Failed to extract playlist from %s"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"

    # Engine
    ENGINE_CLOSED = "Playback engine closed (%d sessions torn down)"
    ENGINE_TASK_FAILED = "Background task failed"


class NotificationMessages:
    """User-facing notification texts delivered through the Notifier port."""

    NOW_PLAYING = "Now playing: **{title}**"
    INVALID_URL = "Skipping **{title}**: it has no playable URL."
    STREAM_RETRY = "Stream dropped, retrying **{title}** ({attempt}/{maximum})"
    PLAYBACK_FAILED = "Could not play **{title}**, skipping it."
    DECODER_MISCONFIGURED = "Could not start the audio decoder for **{title}**. {hint}"
    QUEUE_FINISHED = "Queue finished."
    QUEUE_FINISHED_LEAVING = "Queue finished. Leaving the voice channel in {seconds}s if nothing is added."
    IDLE_DISCONNECT = "Left the voice channel after being idle."

    SOURCE_LABELS = {
        "youtube": "YouTube",
        "twitch": "Twitch",
        "spotify": "Spotify",
        "url": "Link",
    }
