"""Session controller.

Composes the credential store, context synchronizer, turn executor and
message log into a single state machine:

    UNAUTHENTICATED -> SYNCING -> READY -> SENDING -> STREAMING -> READY ...

with a return to UNAUTHENTICATED whenever a credential checkpoint fails or
the user logs out. At most one turn is in flight at a time.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping

from ..auth import Credential, CredentialStore, credential_from_callback
from ..backend import ContextSynchronizer
from .cancellation import CancellationToken
from .executor import TurnExecutor
from .message_log import MessageLog
from .models import SessionState, Turn, TurnOutcome

logger = logging.getLogger(__name__)

ERROR_PREFIX = "❌"

StateListener = Callable[[SessionState, SessionState], None]


class SessionController:
    """Drives one chat session for the locally authorized user."""

    def __init__(
        self,
        store: CredentialStore,
        synchronizer: ContextSynchronizer,
        executor: TurnExecutor,
        log: MessageLog | None = None,
        turn_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._synchronizer = synchronizer
        self._executor = executor
        self._log = log if log is not None else MessageLog()
        self._turn_timeout = turn_timeout

        self._state = SessionState.UNAUTHENTICATED
        self._credential: Credential | None = None
        self._turn: Turn | None = None
        self._turn_task: asyncio.Future | None = None
        self._sync_task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def log(self) -> MessageLog:
        return self._log

    @property
    def credential(self) -> Credential | None:
        """Credential from the last successful checkpoint. For display only."""
        return self._credential

    @property
    def accepts_input(self) -> bool:
        return self._state == SessionState.READY

    @property
    def turn_in_flight(self) -> bool:
        return self._turn is not None

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback receiving (old_state, new_state)."""
        self._listeners.append(listener)

    def _set_state(self, new_state: SessionState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.debug("Session state %s -> %s", old_state.value, new_state.value)
        for listener in self._listeners:
            listener(old_state, new_state)

    # ------------------------------------------------------------------
    # Credential checkpoints
    # ------------------------------------------------------------------

    def check_credential(self) -> Credential | None:
        """Re-validate the stored credential.

        Returns:
            The credential, or None after moving to UNAUTHENTICATED
        """
        credential = self._store.load()
        if credential is None:
            self._expire()
            return None
        self._credential = credential
        return credential

    def _expire(self) -> None:
        self.cancel()
        self._store.clear()
        self._credential = None
        self._set_state(SessionState.UNAUTHENTICATED)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> bool:
        """Start the session if a valid credential is stored.

        Synchronization runs in the background; input is rejected until it
        settles.

        Returns:
            False if authorization is required
        """
        if self._state != SessionState.UNAUTHENTICATED:
            return True

        credential = self.check_credential()
        if credential is None:
            logger.info("No valid credential, authorization required")
            return False

        logger.info("Session started for %s", credential.email)
        self._set_state(SessionState.SYNCING)
        self._sync_task = asyncio.create_task(self._synchronize(credential))
        return True

    async def _synchronize(self, credential: Credential) -> None:
        try:
            await asyncio.gather(
                self._synchronizer.sync(credential),
                self._synchronizer.reset_context(credential),
            )
        except Exception:
            logger.exception("Session synchronization failed")
        finally:
            # A task cancelled by logout must not unlock a newer session
            if self._sync_task is asyncio.current_task() and self._state == SessionState.SYNCING:
                self._set_state(SessionState.READY)

    async def wait_for_sync(self) -> None:
        """Wait until the session-start synchronization settles."""
        if self._sync_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._sync_task

    async def complete_authorization(self, params: Mapping[str, str]) -> Credential:
        """Store the credential delivered by the authorization callback and mount.

        Raises:
            CredentialError: If the callback parameters are incomplete
        """
        credential = credential_from_callback(params, self._store.now())
        if self._state != SessionState.UNAUTHENTICATED:
            self.logout()
        self._store.save(credential)
        logger.info("Authorized %s", credential.email)
        await self.mount()
        return credential

    def logout(self) -> None:
        """Forget the credential and the conversation."""
        self.cancel()
        if self._sync_task is not None and not self._sync_task.done():
            self._sync_task.cancel()
        self._sync_task = None
        self._log.clear()
        self._expire()
        logger.info("Logged out")

    async def close(self) -> None:
        """End the session, keeping the stored credential."""
        self.cancel()
        if self._sync_task is not None:
            self._sync_task.cancel()
            await self.wait_for_sync()
            self._sync_task = None
        self._log.clear()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def submit(self, text: str) -> TurnOutcome:
        """Run one turn for the given user text.

        Returns:
            REJECTED for blank text or when not READY (log unchanged),
            UNAUTHENTICATED when the credential checkpoint fails,
            otherwise how the turn ended
        """
        if not text.strip():
            return TurnOutcome.REJECTED
        if self._state != SessionState.READY:
            logger.debug("Submission rejected in state %s", self._state.value)
            return TurnOutcome.REJECTED

        self._set_state(SessionState.SENDING)
        credential = self.check_credential()
        if credential is None:
            return TurnOutcome.UNAUTHENTICATED

        message_id = self._log.append_turn(text)
        turn = Turn(text=text, message_id=message_id, token=CancellationToken(self._turn_timeout))
        self._turn = turn
        self._turn_task = asyncio.ensure_future(self._executor.execute(
            credential,
            turn,
            on_delta=self._apply_delta,
            on_done=self._apply_done,
            on_error=self._apply_error,
            on_open=self._stream_opened,
        ))

        try:
            outcome = await self._turn_task
        except asyncio.CancelledError:
            if not turn.cancelled:
                # The caller itself was cancelled: stop the turn, then propagate
                self._abort(turn)
                raise
            outcome = TurnOutcome.CANCELLED
        finally:
            if self._turn is turn:
                self._turn = None
                self._turn_task = None
                if self._state in (SessionState.SENDING, SessionState.STREAMING):
                    self._set_state(SessionState.READY)

        logger.info("Turn %s finished: %s", message_id, outcome.value)
        return outcome

    def cancel(self) -> bool:
        """Cancel the in-flight turn, keeping any partial text.

        Returns:
            False if no turn was in flight
        """
        turn = self._turn
        if turn is None:
            return False

        task = self._turn_task
        self._abort(turn)
        self._turn = None
        self._turn_task = None
        if task is not None and not task.done():
            task.cancel()
        if self._state in (SessionState.SENDING, SessionState.STREAMING):
            self._set_state(SessionState.READY)
        return True

    def _abort(self, turn: Turn) -> None:
        turn.token.cancel()
        self._log.cancel_streaming()

    def _stream_opened(self, message_id: str) -> None:
        self._set_state(SessionState.STREAMING)

    def _apply_delta(self, message_id: str, text: str) -> None:
        self._log.replace_streaming_content(message_id, text)

    def _apply_done(self, message_id: str, text: str) -> None:
        self._log.finalize(message_id, text)

    def _apply_error(self, message_id: str, reason: str) -> None:
        message = self._log.get(message_id)
        partial = message.content if message is not None else ""
        error_line = f"{ERROR_PREFIX} {reason}"
        self._log.finalize(message_id, f"{partial}\n\n{error_line}" if partial else error_line, failed=True)
