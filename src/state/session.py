from __future__ import annotations

import json
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from api.client import ApiClient
from api.errors import SessionInvalidError
from api.models import Identity, Role
from db.storage import SessionStorage
from utils.logger import get_logger
from utils.validation import RegistrationForm, ensure_valid, validate_registration

_logger = get_logger(__name__)


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


SessionListener = Callable[["SessionStore"], Awaitable[None]]


class SessionStore:
    """
    Single source of truth for "who is the current user".

    Uninitialized -> Loading -> {Authenticated, Anonymous}; login/register move
    to Authenticated, logout and a rejected token move to Anonymous.
    Listeners are awaited, in subscription order, after every such transition.
    """

    def __init__(self, client: ApiClient, storage: SessionStorage) -> None:
        self._client = client
        self._storage = storage
        self._listeners: List[SessionListener] = []

        self.status: SessionStatus = SessionStatus.UNINITIALIZED
        self.identity: Optional[Identity] = None

        client.add_session_invalid_listener(self._handle_session_invalid)

    # ---------------------------
    # derived
    # ---------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_loading(self) -> bool:
        return self.status in (SessionStatus.UNINITIALIZED, SessionStatus.LOADING)

    @property
    def role(self) -> Optional[Role]:
        return self.identity.role if self.identity else None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def token(self) -> Optional[str]:
        return self._storage.token

    # ---------------------------
    # listeners
    # ---------------------------

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener(self)

    # ---------------------------
    # lifecycle
    # ---------------------------

    async def initialize(self) -> SessionStatus:
        """
        Restore the persisted session. A half-written or unreadable pair
        is wiped and treated as no session at all.
        """
        self.status = SessionStatus.LOADING
        token, user_json = await self._storage.read_pair()

        identity = None
        if token and user_json:
            try:
                identity = Identity.from_json(json.loads(user_json))
            except (ValueError, KeyError, TypeError) as e:
                _logger.warning(f"Discarding unreadable persisted identity: {e}")

        if identity is None:
            if token or user_json:
                await self._storage.clear()
            self.identity = None
            self.status = SessionStatus.ANONYMOUS
        else:
            self.identity = identity
            self.status = SessionStatus.AUTHENTICATED

        _logger.info(f"Session restored as {self.status.value}")
        await self._notify()
        return self.status

    async def login(self, username: str, password: str) -> Identity:
        response = await self._client.login(username, password)
        return await self._establish(response.token, response.identity())

    async def register(self, form: RegistrationForm) -> Identity:
        ensure_valid(validate_registration(form))
        response = await self._client.register(form.to_json())
        return await self._establish(response.token, response.identity())

    async def logout(self) -> None:
        await self._storage.clear()
        self.identity = None
        self.status = SessionStatus.ANONYMOUS
        _logger.info("Logged out")
        await self._notify()

    async def _establish(self, token: str, identity: Identity) -> Identity:
        await self._storage.write_pair(token, json.dumps(identity.to_json()))
        self.identity = identity
        self.status = SessionStatus.AUTHENTICATED
        _logger.info(f"Authenticated as {identity.username} ({identity.role.value})")
        await self._notify()
        return identity

    async def _handle_session_invalid(self, _error: SessionInvalidError) -> None:
        # storage was already cleared by the client
        was_authenticated = self.is_authenticated
        self.identity = None
        self.status = SessionStatus.ANONYMOUS
        if was_authenticated:
            _logger.info("Session rejected by the server")
            await self._notify()
