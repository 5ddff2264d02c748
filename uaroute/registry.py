# uaroute/registry.py

import enum
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional, Tuple

from uaroute.config import settings
from uaroute.errors import InitError
from uaroute.rules import (
    DEVICE,
    OPERATING_SYSTEM,
    USER_AGENT,
    CompiledRule,
    EntityKind,
    RuleDefinitions,
    compile_rules,
    load_rule_document,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registry:
    """Compiled rules for all three entity kinds. Never mutated once built."""
    user_agent_rules: Tuple[CompiledRule, ...]
    os_rules: Tuple[CompiledRule, ...]
    device_rules: Tuple[CompiledRule, ...]
    match_timeout: Optional[float] = None

    @classmethod
    def build(cls, definitions: RuleDefinitions, match_timeout: Optional[float] = None) -> "Registry":
        started = time.perf_counter()

        registry = cls(
            user_agent_rules=compile_rules(USER_AGENT, definitions.user_agent),
            os_rules=compile_rules(OPERATING_SYSTEM, definitions.os),
            device_rules=compile_rules(DEVICE, definitions.device),
            match_timeout=match_timeout,
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Compiled {len(registry.user_agent_rules)} user agent, "
            f"{len(registry.os_rules)} os and {len(registry.device_rules)} device rules "
            f"in {elapsed_ms:.0f}ms"
        )
        return registry

    def rules_for(self, kind: EntityKind) -> Tuple[CompiledRule, ...]:
        return {
            USER_AGENT.name: self.user_agent_rules,
            OPERATING_SYSTEM.name: self.os_rules,
            DEVICE.name: self.device_rules,
        }[kind.name]


class RegistryState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class RegistryCell:
    """
    Write-once holder for a Registry.

    Racing first callers are serialized on a lock so the loader runs once.
    Once ready, reads go straight to the stored registry without locking.
    A failed attempt is re-raised to every caller that was waiting on it,
    then the cell goes back to uninitialized so a later init() can retry.
    """

    def __init__(self, loader: Callable[[], Registry]):
        self._loader = loader
        self._registry: Optional[Registry] = None
        self._lock = Lock()
        self._initializing = False

        # Bumped after each failed attempt, so waiters can tell it happened
        self._failed_attempts = 0
        self._last_error: Optional[InitError] = None

    @property
    def state(self) -> RegistryState:
        if self._registry is not None:
            return RegistryState.READY
        if self._initializing:
            return RegistryState.INITIALIZING
        return RegistryState.UNINITIALIZED

    def init(self) -> bool:
        """
        Build the registry if needed.

        Returns True if this call did the compilation, False if the registry
        was already ready. Raises InitError if the attempt this call ran or
        waited on failed.
        """
        if self._registry is not None:
            return False

        seen_failures = self._failed_attempts

        with self._lock:
            if self._registry is not None:
                return False

            if self._failed_attempts != seen_failures:
                raise self._last_error

            self._initializing = True
            try:
                registry = self._loader()
            except InitError as e:
                self._last_error = e
                self._failed_attempts += 1
                logger.error(f"Rule registry initialisation failed: {e}")
                raise
            finally:
                self._initializing = False

            self._registry = registry
            return True

    def get(self) -> Registry:
        registry = self._registry
        if registry is None:
            self.init()
            registry = self._registry
        return registry


def load_default_registry() -> Registry:
    definitions = load_rule_document(settings.regexes_path)
    return Registry.build(definitions, match_timeout=settings.match_timeout_seconds)


_default_cell = RegistryCell(load_default_registry)


def init() -> bool:
    """
    Force compilation of the process-wide rule registry.

    Call this at startup so the first request does not pay the cost.
    Returns True if this call compiled the rules, False if already done.
    """
    return _default_cell.init()


def get_registry() -> Registry:
    """Process-wide registry, compiled on first use"""
    return _default_cell.get()


def registry_state() -> RegistryState:
    return _default_cell.state
