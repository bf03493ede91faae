import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from .metrics import EXTERNAL_CALL_COUNT, EXTERNAL_CALL_LATENCY
from .schemas import UserSnapshot

TARGET_SERVICE = "users-service"


class UserNotFound(Exception):
    """Le Users Service a répondu que l'utilisateur n'existe pas."""

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UserServiceUnavailable(Exception):
    """Impossible de savoir si l'utilisateur existe (réseau, timeout, réponse invalide)."""

    def __init__(self, user_id: int, reason: str):
        super().__init__(f"Users service unavailable while looking up user {user_id}: {reason}")
        self.user_id = user_id
        self.reason = reason


class UserLookup(ABC):
    """Capacité de vérification d'un utilisateur par id.

    Le Orders Service ne dépend que de ce contrat; le client HTTP en est une
    implémentation, les tests en fournissent une autre.
    """

    @abstractmethod
    async def get_user(self, user_id: int, trace_id: Optional[str] = None) -> UserSnapshot:
        """Retourne l'utilisateur, ou lève UserNotFound / UserServiceUnavailable."""


class HttpUserLookup(UserLookup):
    """Appel synchrone GET /users/{id} vers le Users Service, sans retry."""

    def __init__(self, base_url: str, timeout: float, service_name: str = "orders-service",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.service_name = service_name
        self.transport = transport

    def _record(self, status: str, latency: float):
        EXTERNAL_CALL_COUNT.labels(
            service=self.service_name,
            target_service=TARGET_SERVICE,
            status=status,
        ).inc()
        EXTERNAL_CALL_LATENCY.labels(
            service=self.service_name,
            target_service=TARGET_SERVICE,
        ).observe(latency)

    async def get_user(self, user_id: int, trace_id: Optional[str] = None) -> UserSnapshot:
        start_time = time.time()
        headers = {"X-Trace-ID": trace_id} if trace_id else {}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.get(f"{self.base_url}/users/{user_id}", headers=headers)
            except httpx.HTTPError as e:
                self._record("error", time.time() - start_time)
                logger.error(f"Error calling users service: {e!r}")
                raise UserServiceUnavailable(user_id, type(e).__name__) from e

        latency = time.time() - start_time
        if resp.status_code == 404:
            self._record("not_found", latency)
            logger.warning(f"User {user_id} validation failed: not found")
            raise UserNotFound(user_id)
        if resp.status_code != 200:
            self._record("error", latency)
            logger.error(f"Users service answered {resp.status_code} for user {user_id}")
            raise UserServiceUnavailable(user_id, f"unexpected status {resp.status_code}")

        try:
            user = UserSnapshot.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            self._record("error", latency)
            logger.error(f"Malformed payload from users service for user {user_id}")
            raise UserServiceUnavailable(user_id, "malformed payload") from e
        if user.id != user_id:
            self._record("error", latency)
            logger.error(f"Users service returned user {user.id} when asked for {user_id}")
            raise UserServiceUnavailable(user_id, "mismatched user id")

        self._record("success", latency)
        logger.info(f"User {user_id} validated")
        return user
