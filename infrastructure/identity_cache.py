# ============================================================================
# RESOURCE IDENTITY CACHE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - Name -> ARN resolution with create-on-miss
# PURPOSE: Avoid repeated by-name lookups against SQS/SNS
# CREATED: 13 OCT 2026
# ============================================================================
"""
Resource Identity Cache

Maps a human-readable resource name to its ARN. One cache per service
adapter instance; entries are never evicted and die with the adapter, so
several transports in one process stay isolated.

Resolution on a miss:
    1. exact-match remote lookup by name
    2. if absent and create_if_absent: create the resource
    3. otherwise None - absence is a normal state, not an error

Concurrent misses for the same name are single-flighted behind one of a
fixed set of striped locks (a name always maps to the same stripe). The
SNS by-name lookup scans every topic in the account, so running it once
per name matters more than two names occasionally sharing a stripe.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from core.contracts import ServiceType

logger = logging.getLogger(__name__)

LookupFunc = Callable[[str], Optional[str]]
CreateFunc = Callable[[str], str]

NAME_LOCK_STRIPES = 32


class ResourceIdentityCache:
    """
    Thread-safe name -> ARN cache with single-flight resolution.

    Usage:
        cache = ResourceIdentityCache(ServiceType.SNS, lookup=find_arn, create=create_topic)
        arn = cache.resolve("orders", create_if_absent=True)
    """

    def __init__(
        self,
        service: ServiceType,
        lookup: LookupFunc,
        create: Optional[CreateFunc] = None,
    ):
        self.service = service
        self._lookup = lookup
        self._create = create
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._name_locks = [threading.Lock() for _ in range(NAME_LOCK_STRIPES)]
        self._warned_on_lookup = False

    def _name_lock(self, name: str) -> threading.Lock:
        return self._name_locks[hash(name) % len(self._name_locks)]

    def _warn_once(self, name: str) -> None:
        if self._warned_on_lookup:
            return
        self._warned_on_lookup = True
        logger.warning(
            f"Looking up {self.service.value} ARN for '{name}' by name; "
            f"for best performance, specify {self.service.value} addresses using their ARNs"
        )

    def get(self, name: str) -> Optional[str]:
        """Cached identity only; never calls out."""
        return self._entries.get(name)

    def seed(self, name: str, identity: str) -> None:
        """Force-insert a known mapping."""
        with self._lock:
            self._entries[name] = identity
        logger.debug(f"Seeded {self.service.value} identity cache: {name} -> {identity}")

    def resolve(self, name: str, create_if_absent: bool = False) -> Optional[str]:
        """
        Resolve a resource name to its ARN.

        Args:
            name: Resource name (not an ARN or URL)
            create_if_absent: Create the resource when the lookup finds nothing

        Returns:
            ARN, or None if the resource does not exist and was not created

        Raises:
            RemoteOperationFailed: If the lookup or create call fails
        """
        identity = self._entries.get(name)
        if identity is not None:
            return identity

        with self._name_lock(name):
            # Another thread may have resolved it while we waited
            identity = self._entries.get(name)
            if identity is not None:
                return identity

            self._warn_once(name)
            identity = self._lookup(name)

            if identity is None and create_if_absent:
                if self._create is None:
                    raise ValueError(f"{self.service.value} identity cache has no create function")
                logger.info(f"{self.service.value} resource '{name}' not found, creating")
                identity = self._create(name)

            if identity is None:
                logger.debug(f"{self.service.value} resource '{name}' does not exist")
                return None

            with self._lock:
                self._entries.setdefault(name, identity)
                return self._entries[name]

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ResourceIdentityCache"]
