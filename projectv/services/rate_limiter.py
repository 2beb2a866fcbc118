"""
Limitador de requisições por cliente
Janela por chave: começa no primeiro acesso e expira após window_seconds.
"""
import math
import threading
import time
from typing import Callable, Dict, NamedTuple, Tuple


class RateLimitDecision(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # segundos até a janela expirar


class SlidingWindowRateLimiter:
    """Contador por chave com instante de reset, em memória do processo"""

    def __init__(self, max_requests: int = 10, window_seconds: float = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # chave -> (contagem, instante de reset)
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._next_prune = 0.0

    def try_acquire(self, key: str) -> RateLimitDecision:
        """Conta uma requisição para a chave e diz se ela pode prosseguir"""
        with self._lock:
            now = self._clock()
            self._prune(now)

            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + self.window_seconds

            count += 1
            self._windows[key] = (count, reset_at)

        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(self.max_requests - count, 0),
            reset_after=max(math.ceil(reset_at - now), 0),
        )

    def _prune(self, now: float) -> None:
        # chamado com o lock adquirido
        if now < self._next_prune:
            return
        self._windows = {k: v for k, v in self._windows.items() if v[1] > now}
        self._next_prune = now + self.window_seconds

    def reset(self) -> None:
        """Zera todos os contadores"""
        with self._lock:
            self._windows.clear()
            self._next_prune = 0.0

    def __len__(self) -> int:
        return len(self._windows)
