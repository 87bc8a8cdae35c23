"""Credential selection strategies for providers configured with several API keys."""

import itertools
import random
import threading
from abc import ABC, abstractmethod
from typing import Optional

from .errors import ProviderConfigError


class KeySelector(ABC):
    name: str

    def __init__(self, keys: list[str], provider: str = "OpenRouter") -> None:
        self.keys = [k for k in keys if k]
        self.provider = provider

    def _require_keys(self) -> None:
        if not self.keys:
            raise ProviderConfigError(f"No {self.provider} API keys configured")

    @abstractmethod
    def select(self) -> str:
        ...


class RandomKeySelector(KeySelector):
    """Uniform random choice per call; no state between requests."""

    name = "random"

    def __init__(
        self,
        keys: list[str],
        provider: str = "OpenRouter",
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(keys, provider)
        self._rng = rng or random.Random()

    def select(self) -> str:
        self._require_keys()
        return self._rng.choice(self.keys)


class RoundRobinKeySelector(KeySelector):
    name = "round_robin"

    def __init__(self, keys: list[str], provider: str = "OpenRouter") -> None:
        super().__init__(keys, provider)
        self._cycle = itertools.cycle(self.keys) if self.keys else None
        self._lock = threading.Lock()

    def select(self) -> str:
        self._require_keys()
        with self._lock:
            return next(self._cycle)


_STRATEGIES: dict[str, type[KeySelector]] = {
    RandomKeySelector.name: RandomKeySelector,
    RoundRobinKeySelector.name: RoundRobinKeySelector,
}


def build_key_selector(
    strategy: str, keys: list[str], provider: str = "OpenRouter"
) -> KeySelector:
    selector_cls = _STRATEGIES.get(strategy)
    if selector_cls is None:
        raise ValueError(f"Unknown key selection strategy: {strategy}")
    return selector_cls(keys, provider)
