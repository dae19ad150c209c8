"""Recording / analysis session lifecycle.

``VoiceSession`` is the single source of truth for what the user sees. It
drives the capture pipeline, a one-second recording timer, the remote
analyzer and share-link production, and notifies listeners with a
``SessionSnapshot`` after every transition.

A module-level registry keeps the one session served by the HTTP surface.

Usage::

    from voicecheck.services.session import create_session, close_active_session

    session = await create_session(url="/", language="en")
    await session.start_recording()
    await session.stop_recording()
    await close_active_session()
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from voicecheck.core.config import get_settings
from voicecheck.core.exceptions import (
    ANALYSIS_FAILED_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
    AnalyzerError,
    InvalidTransitionError,
    MicrophonePermissionError,
    ShareDecodeError,
)
from voicecheck.core.models import AnalysisResult, SessionSnapshot, SessionState
from voicecheck.services.analyzer import VoiceAnalyzer, create_analyzer_model
from voicecheck.services.analyzer.prompts import normalize_language
from voicecheck.services.audio import AudioCapture, AudioPayload, SoundDeviceSource
from voicecheck.services.clipboard import ClipboardSink, InMemoryClipboard
from voicecheck.services.location import (
    InMemoryLocationProvider,
    Location,
    LocationProvider,
    RouteKind,
    root_url,
)
from voicecheck.services.sharing import build_share_url, decode_share_payload
from voicecheck.services.storage import AccessLogStore

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionSnapshot], None]


class VoiceSession:
    """One record -> analyze -> present cycle.

    Args:
        analyzer: Remote analyzer; one ``analyze`` call per recording.
        capture: Audio capture pipeline owning the microphone.
        store: Access-log store; None disables persistence.
        location: Addressable location provider.
        clipboard: Sink for share links.
        language: Output-language hint for the report text.
        user_agent: Client description stored with each log record.
        max_seconds: Hard recording cap.
        tick_interval: Seconds per timer tick (one tick = one elapsed second).
        share_ack_seconds: How long the "copied" acknowledgment stays up.
        share_base_url: Canonical location share links are built on.
    """

    def __init__(
        self,
        analyzer: VoiceAnalyzer,
        capture: AudioCapture,
        store: AccessLogStore | None,
        location: LocationProvider,
        clipboard: ClipboardSink,
        *,
        language: str | None = None,
        user_agent: str | None = None,
        max_seconds: int | None = None,
        tick_interval: float | None = None,
        share_ack_seconds: float | None = None,
        share_base_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._analyzer = analyzer
        self._capture = capture
        self._store = store
        self._location = location
        self._clipboard = clipboard
        self.language = normalize_language(language or settings.default_language)
        self.user_agent = user_agent
        self._max_seconds = max_seconds or settings.max_recording_seconds
        self._tick_interval = (
            tick_interval if tick_interval is not None else settings.tick_interval_seconds
        )
        self._share_ack_seconds = (
            share_ack_seconds if share_ack_seconds is not None else settings.share_ack_seconds
        )
        self._share_base_url = share_base_url or settings.share_base_url

        self._state = SessionState.idle
        self._elapsed = 0
        self._captured_audio: AudioPayload | None = None
        self._analysis: AnalysisResult | None = None
        self._error_message: str | None = None
        self._copied = False

        self._acquiring = False
        self._closed = False
        self._route_checked = False
        self._timer_task: asyncio.Task | None = None
        self._copied_task: asyncio.Task | None = None
        self._listeners: list[SessionListener] = []

        self.check_initial_route()
        self._unsubscribe = self._location.subscribe(self._on_location_change)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def analysis(self) -> AnalysisResult | None:
        return self._analysis

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def captured_audio(self) -> AudioPayload | None:
        return self._captured_audio

    @property
    def copied(self) -> bool:
        return self._copied

    @property
    def location(self) -> LocationProvider:
        return self._location

    @property
    def levels(self) -> list[int]:
        """Latest level-meter bins (all zero outside recording)."""
        return self._capture.levels

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            elapsed_seconds=self._elapsed,
            max_seconds=self._max_seconds,
            analysis=self._analysis,
            error_message=self._error_message,
            copied=self._copied,
            language=self.language,
        )

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register *listener* for snapshots; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.warning("Session listener failed (non-fatal)", exc_info=True)

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.info("Session %s -> %s", self._state.value, state.value)
        self._state = state
        self._notify()

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def check_initial_route(self) -> None:
        """Inspect the location once at construction.

        An admin marker enters admin. A share payload is adopted straight
        into result; a payload that does not decode is dropped, the
        location is reset to the bare root and the session stays idle.
        """
        if self._route_checked or self._state is not SessionState.idle:
            return
        self._route_checked = True
        current = self._location.current()
        if current.kind is RouteKind.admin:
            self._enter_admin()
            return
        if current.kind is not RouteKind.share:
            return

        try:
            shared = decode_share_payload(current.share_token or "")
        except ShareDecodeError as exc:
            logger.warning("Ignoring share link: %s", exc.detail)
            self._location.replace(root_url(current.url))
            return

        self._analysis = shared
        logger.info("Adopted shared result (score=%s)", shared.overall_score)
        self._set_state(SessionState.result)

    def _on_location_change(self, location: Location) -> None:
        # Share links are only honored on entry; later changes act on admin only
        if location.kind is RouteKind.admin:
            self.enter_admin()

    def enter_admin(self) -> None:
        """Switch to the admin view.

        Ignored while processing. From recording the microphone is released
        and the audio discarded.
        """
        if self._state is SessionState.processing:
            logger.info("Admin route ignored while processing")
            return
        if self._state is SessionState.admin:
            return
        self._enter_admin()

    def _enter_admin(self) -> None:
        if self._state is SessionState.recording:
            self._cancel_timer()
            self._capture.release()
        self._cancel_copied()
        self._clear_fields()
        self._set_state(SessionState.admin)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def start_recording(self) -> None:
        """Acquire the microphone and start the capped recording timer.

        Raises:
            InvalidTransitionError: If the session is not idle.
        """
        if self._state is not SessionState.idle or self._acquiring:
            raise InvalidTransitionError("start recording", self._state.value)

        self._acquiring = True
        try:
            await self._capture.acquire()
        except MicrophonePermissionError as exc:
            logger.warning("Microphone permission denied: %s", exc.detail)
            self._fail(PERMISSION_DENIED_MESSAGE)
            return
        finally:
            self._acquiring = False

        if self._state is not SessionState.idle or self._closed:
            # Moved to admin (or closed) while the permission prompt was open
            self._capture.release()
            return

        self._capture.start()
        self._elapsed = 0
        self._set_state(SessionState.recording)
        self._timer_task = asyncio.create_task(self._run_timer())

    async def _run_timer(self) -> None:
        try:
            while self._state is SessionState.recording:
                await asyncio.sleep(self._tick_interval)
                if self._state is not SessionState.recording:
                    return
                self._elapsed = min(self._elapsed + 1, self._max_seconds)
                self._notify()
                if self._elapsed >= self._max_seconds:
                    logger.info("Recording cap of %ss reached", self._max_seconds)
                    await self.stop_recording()
                    return
        finally:
            if self._timer_task is asyncio.current_task():
                self._timer_task = None

    def _cancel_timer(self) -> None:
        task = self._timer_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            self._timer_task = None

    async def stop_recording(self) -> None:
        """Finalize the recording and run the single analyze call.

        A no-op unless recording, so the timer cap and a manual stop can
        both fire safely. Returns once the analysis has resolved.
        """
        if self._state is not SessionState.recording:
            logger.debug("stop_recording ignored in state %s", self._state.value)
            return

        self._cancel_timer()
        payload = self._capture.stop()
        self._elapsed = 0
        self._captured_audio = payload
        self._set_state(SessionState.processing)

        try:
            result = await self._analyzer.analyze(payload, self.language)
        except AnalyzerError as exc:
            logger.error("Analysis failed: %s", exc.detail)
            self._fail(ANALYSIS_FAILED_MESSAGE)
            return
        except Exception:
            logger.exception("Unexpected analyzer failure")
            self._fail(ANALYSIS_FAILED_MESSAGE)
            return
        finally:
            self._captured_audio = None

        if self._closed:
            return
        self._analysis = result
        self._set_state(SessionState.result)

        if self._store is not None:
            await self._store.save(result, self.user_agent)

    def _fail(self, message: str) -> None:
        self._cancel_timer()
        self._capture.release()
        self._clear_fields()
        self._error_message = message
        self._set_state(SessionState.error)

    # ------------------------------------------------------------------
    # Reset / share
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to idle and clear admin/share markers from the location.

        Raises:
            InvalidTransitionError: While recording or processing.
        """
        if self._state is SessionState.idle:
            return
        if self._state in (SessionState.recording, SessionState.processing):
            raise InvalidTransitionError("reset", self._state.value)

        self._cancel_copied()
        self._clear_fields()
        current = self._location.current()
        if current.has_markers:
            self._location.replace(root_url(current.url))
        self._set_state(SessionState.idle)

    async def share(self) -> str:
        """Build the share URL for the current result and copy it.

        Clipboard failures are logged; the URL is still returned and the
        copied flag stays down.

        Raises:
            InvalidTransitionError: If there is no result to share.
        """
        if self._state is not SessionState.result or self._analysis is None:
            raise InvalidTransitionError("share", self._state.value)

        url = build_share_url(self._share_base_url, self._analysis)
        try:
            await self._clipboard.write(url)
        except Exception:
            logger.warning("Clipboard write failed", exc_info=True)
            return url

        self._cancel_copied()
        self._copied = True
        self._notify()
        self._copied_task = asyncio.create_task(self._revert_copied())
        return url

    async def _revert_copied(self) -> None:
        await asyncio.sleep(self._share_ack_seconds)
        self._copied = False
        self._copied_task = None
        self._notify()

    def _cancel_copied(self) -> None:
        if self._copied_task is not None:
            self._copied_task.cancel()
            self._copied_task = None
        self._copied = False

    def _clear_fields(self) -> None:
        self._elapsed = 0
        self._captured_audio = None
        self._analysis = None
        self._error_message = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def join(self) -> None:
        """Wait for an in-flight recording timer (and the analysis it triggers)."""
        task = self._timer_task
        if task is not None and task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def close(self) -> None:
        """Release the device, cancel background tasks and stop observing the location."""
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        self._cancel_copied()
        task = self._timer_task
        self._cancel_timer()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._capture.release()
        self._listeners.clear()
        logger.info("Session closed in state %s", self._state.value)


# ---------------------------------------------------------------------------
# Default collaborators
# ---------------------------------------------------------------------------


def build_analyzer() -> VoiceAnalyzer:
    """Analyzer wired to the configured provider."""
    settings = get_settings()
    model = create_analyzer_model(provider=settings.analyzer_provider)
    return VoiceAnalyzer(model, temperature=settings.analyzer_temperature)


def build_capture() -> AudioCapture:
    """Capture pipeline on the configured input device."""
    settings = get_settings()
    source = SoundDeviceSource(
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        device=settings.input_device or None,
    )
    return AudioCapture(
        source,
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        visualizer_bins=settings.visualizer_bins,
        visualizer_fps=settings.visualizer_fps,
    )


def build_store() -> AccessLogStore:
    return AccessLogStore.default()


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_active_session: VoiceSession | None = None


async def create_session(
    url: str = "/",
    language: str | None = None,
    user_agent: str | None = None,
) -> VoiceSession:
    """Replace the active session with a fresh one at *url*.

    The initial route check runs as part of construction, so a share link
    in *url* is adopted before this returns.
    """
    global _active_session
    await close_active_session()

    settings = get_settings()
    session = VoiceSession(
        analyzer=build_analyzer(),
        capture=build_capture(),
        store=build_store(),
        location=InMemoryLocationProvider(url, admin_path=settings.admin_path),
        clipboard=InMemoryClipboard(),
        language=language,
        user_agent=user_agent,
    )
    _active_session = session
    logger.info("Created session at %s (state=%s)", url, session.state.value)
    return session


def get_active_session() -> VoiceSession | None:
    """Return the currently active session, or None."""
    return _active_session


async def close_active_session() -> None:
    """Close the active session, if any (also called during app shutdown)."""
    global _active_session
    if _active_session is None:
        return
    session = _active_session
    _active_session = None
    await session.close()
