"""Turn-scoped history of agent rounds.

Rounds produced by tool dispatch are appended to their turn in the order they
arrive. Nothing is merged or deduplicated by ``round_id``; unique ids are the
producer's concern.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Sequence

from ..ai_types import AgentRound

LOGGER = logging.getLogger(__name__)

HistoryListener = Callable[[str, tuple[AgentRound, ...]], None]


def fold_rounds(existing: Sequence[AgentRound], new_rounds: Iterable[AgentRound]) -> tuple[AgentRound, ...]:
    """Return ``existing`` followed by ``new_rounds``, order preserved."""

    return tuple(existing) + tuple(new_rounds)


class RoundHistory:
    """Ordered rounds per turn, fed through the ``(turn_id, rounds)`` sink."""

    def __init__(self) -> None:
        self._rounds: dict[str, tuple[AgentRound, ...]] = {}
        self._listeners: list[HistoryListener] = []
        self._lock = threading.Lock()

    def update(self, turn_id: str, rounds: Sequence[AgentRound]) -> None:
        """Append ``rounds`` to the history of ``turn_id``."""

        with self._lock:
            folded = fold_rounds(self._rounds.get(turn_id, ()), rounds)
            self._rounds[turn_id] = folded
        self._notify(turn_id, folded)

    __call__ = update

    def rounds_for(self, turn_id: str) -> tuple[AgentRound, ...]:
        with self._lock:
            return self._rounds.get(turn_id, ())

    def turn_ids(self) -> list[str]:
        with self._lock:
            return list(self._rounds)

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """Register ``listener`` for every update; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:  # pragma: no cover - already removed
                pass

        return _unsubscribe

    def _notify(self, turn_id: str, rounds: tuple[AgentRound, ...]) -> None:
        for listener in list(self._listeners):
            try:
                listener(turn_id, rounds)
            except Exception:
                LOGGER.warning("History listener failed for turn %s", turn_id, exc_info=True)


__all__ = ["RoundHistory", "HistoryListener", "fold_rounds"]
