"""
MikroTik Connection Pool
Keeps idle, logged-in RouterOS API clients per router so consecutive
dashboard requests can skip the TCP connect and /login round-trips.

A client is owned by exactly one request between checkout() and checkin().
With max_idle_per_router=0 the pool is a pass-through: every checkout opens
a new client and every checkin closes it.
"""
import logging
import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Tuple

from app.config import settings
from app.services.mikrotik_api import MikroTikAPI
from app.services.router_helpers import RouterCredentials, connect_to_router

logger = logging.getLogger(__name__)


class MikroTikConnectionPool:
    def __init__(
        self,
        max_idle_per_router: int = 0,
        idle_seconds: float = 60,
        connector: Callable[[RouterCredentials], MikroTikAPI] = connect_to_router,
    ):
        self.max_idle_per_router = max_idle_per_router
        self.idle_seconds = idle_seconds
        self._connector = connector
        self._idle: Dict[tuple, Deque[Tuple[MikroTikAPI, float]]] = {}
        self._lock = Lock()  # Protects access to _idle

    @property
    def enabled(self) -> bool:
        return self.max_idle_per_router > 0

    def idle_count(self, credentials: RouterCredentials) -> int:
        with self._lock:
            return len(self._idle.get(credentials.pool_key, ()))

    def checkout(self, credentials: RouterCredentials) -> MikroTikAPI:
        """Return a logged-in client, reusing an idle one when possible. Blocking."""
        if self.enabled:
            stale = []
            reused = None
            now = time.monotonic()
            with self._lock:
                idle = self._idle.get(credentials.pool_key)
                while idle:
                    api, released_at = idle.pop()
                    if api.connected and now - released_at <= self.idle_seconds:
                        reused = api
                        break
                    stale.append(api)
                if idle is not None and not idle:
                    del self._idle[credentials.pool_key]
            for api in stale:
                api.close()
            if reused is not None:
                logger.debug(f"Reusing connection for router {credentials.router_id}")
                return reused
        api = self._connector(credentials)
        logger.debug(f"Created new connection for router {credentials.router_id} ({credentials.host})")
        return api

    def checkin(self, credentials: RouterCredentials, api: MikroTikAPI, reusable: bool = True) -> None:
        """Hand a client back. Clients that saw a transport error must pass reusable=False."""
        if self.enabled and reusable and api.connected:
            with self._lock:
                idle = self._idle.setdefault(credentials.pool_key, deque())
                if len(idle) < self.max_idle_per_router:
                    idle.append((api, time.monotonic()))
                    return
        api.close()

    def close_all(self) -> None:
        with self._lock:
            pools, self._idle = self._idle, {}
        closed = 0
        for idle in pools.values():
            for api, _ in idle:
                api.close()
                closed += 1
        logger.info(f"Closed {closed} pooled MikroTik connection(s)")


connection_pool = MikroTikConnectionPool(
    max_idle_per_router=settings.MIKROTIK_POOL_SIZE,
    idle_seconds=settings.MIKROTIK_POOL_IDLE_SECONDS,
)
