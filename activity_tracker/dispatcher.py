"""Report dispatch to the remote collector."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Set

import requests

from activity_tracker.cancellation import SupersedingScope
from activity_tracker.logger import ReportError, get_logger
from activity_tracker.state import State

logger = get_logger(__name__)

# Connect timeout used whenever a read timeout is configured
CONNECT_TIMEOUT_SECS = 10.0

# How long close waits for a worker thread still posting through the session
CLOSE_GRACE_SECS = 5.0


def build_payload(state: State, repository: Optional[str]) -> Dict[str, Any]:
    return {"repository": repository, **state.to_payload()}


class ReportDispatcher:
    """POSTs activity reports, keeping at most one send in flight.

    ``dispatch`` cancels whatever send is still running before starting the
    next one. Failures are logged and never raised to the caller.
    """

    def __init__(self, target: str, token: str, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.target = target
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self._scope = SupersedingScope("report")
        self._posts: Set[asyncio.Task] = set()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def in_flight(self) -> bool:
        return self._scope.active

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        timeout = (CONNECT_TIMEOUT_SECS, self.timeout) if self.timeout else None
        resp = self.session.post(self.target, json=payload, headers=self._headers(), timeout=timeout)
        # Only 2xx counts; requests' Response.ok also accepts 3xx
        if not 200 <= resp.status_code < 300:
            raise ReportError(resp.status_code, resp.text)
        return resp

    def _track_post(self, payload: Dict[str, Any]) -> asyncio.Task:
        post = asyncio.ensure_future(asyncio.to_thread(self._post, payload))
        self._posts.add(post)
        post.add_done_callback(self._forget_post)
        return post

    def _forget_post(self, post: asyncio.Task) -> None:
        self._posts.discard(post)
        # A superseded send no longer awaits its post; consume the outcome here
        if not post.cancelled():
            post.exception()

    async def send(self, state: State, repository: Optional[str]) -> bool:
        """Send one report. Returns True on a 2xx answer."""
        payload = build_payload(state, repository)
        logger.info(f"[report] Updating state for {state.file_name} ({state.row}:{state.col})")
        try:
            # The worker thread keeps running if we are cancelled; close() waits for it
            await asyncio.shield(self._track_post(payload))
        except ReportError as e:
            logger.error(f"[report] Something went wrong: {e}")
            return False
        except requests.exceptions.Timeout as e:
            logger.warning(f"[report] Report timed out: {e}")
            return False
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"[report] Connection error: {e}")
            return False
        except requests.exceptions.RequestException as e:
            logger.warning(f"[report] Network error: {e}")
            return False
        except Exception as e:
            logger.error(f"[report] Unexpected error: {e}")
            return False
        logger.debug(f"[report] Report accepted by {self.target}")
        return True

    def dispatch(self, state: State, repository: Optional[str]) -> asyncio.Task:
        """Start sending ``state``, superseding any earlier unfinished send."""
        if self._scope.cancel():
            logger.debug("[report] Superseded previous in-flight report")
        return self._scope.start(self.send(state, repository))

    def cancel(self) -> bool:
        return self._scope.cancel()

    async def aclose(self) -> None:
        """Cancel the in-flight send, let its worker thread finish, then close."""
        await self._scope.drain()
        posts = set(self._posts)
        if posts:
            _, pending = await asyncio.wait(posts, timeout=CLOSE_GRACE_SECS)
            if pending:
                logger.warning(f"[report] Closing HTTP session with {len(pending)} report(s) still posting")
        self.close()

    def close(self) -> None:
        self._scope.cancel()
        try:
            self.session.close()
        except Exception as e:
            logger.warning(f"[report] Failed to close HTTP session: {e}")
