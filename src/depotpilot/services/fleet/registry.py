"""In-memory registry of tracked fleet endpoints."""

import threading
from typing import Any

from depotpilot.exceptions import ResourceNotFoundError, ValidationError
from depotpilot.logger import get_logger
from depotpilot.models.fleet import FleetEndpoint

logger = get_logger(__name__)


def _key(hostname: str) -> str:
    return hostname.strip().lower()


class FleetRegistry:
    """
    Tracked endpoints keyed by hostname (case-insensitive).

    Callers always receive copies; the registry's own records change only
    through ``add``, ``update`` and ``remove``.
    """

    def __init__(self) -> None:
        self._endpoints: dict[str, FleetEndpoint] = {}
        self._lock = threading.Lock()

    def add(self, hostname: str) -> FleetEndpoint:
        """Start tracking ``hostname``. Adding a known host returns its current record."""
        name = hostname.strip()
        if not name:
            raise ValidationError("Hostname is required")
        with self._lock:
            endpoint = self._endpoints.get(_key(name))
            if endpoint is None:
                endpoint = FleetEndpoint(hostname=name)
                self._endpoints[_key(name)] = endpoint
                logger.info("Endpoint added", hostname=name)
            return endpoint.model_copy(deep=True)

    def remove(self, hostname: str) -> None:
        with self._lock:
            if self._endpoints.pop(_key(hostname), None) is None:
                raise ResourceNotFoundError("Endpoint {hostname} is not tracked", hostname=hostname)
        logger.info("Endpoint removed", hostname=hostname)

    def get(self, hostname: str) -> FleetEndpoint | None:
        with self._lock:
            endpoint = self._endpoints.get(_key(hostname))
            return endpoint.model_copy(deep=True) if endpoint else None

    def list_endpoints(self) -> list[FleetEndpoint]:
        """Return every endpoint in the order it was added."""
        with self._lock:
            return [e.model_copy(deep=True) for e in self._endpoints.values()]

    def update(self, hostname: str, **fields: Any) -> FleetEndpoint:  # noqa: ANN401
        """Replace the given fields of a tracked endpoint and return the new record."""
        with self._lock:
            current = self._endpoints.get(_key(hostname))
            if current is None:
                raise ResourceNotFoundError("Endpoint {hostname} is not tracked", hostname=hostname)
            updated = current.model_copy(update=fields)
            self._endpoints[_key(hostname)] = updated
            return updated.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._endpoints)
