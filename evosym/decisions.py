"""
Decision Tracing

Each creature update produces a DecisionTrace: what the creature sensed,
what its brain answered and which actions that implied. Traces are
returned from Creature.update and optionally pushed to an observer.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Protocol, Sequence

from .config import CreatureConfig


@dataclass
class CreatureActions:
    """Brain outputs mapped to named actions."""
    move_x: float
    move_y: float
    eat: float
    attack: float
    reproduce: float

    @classmethod
    def from_outputs(cls, outputs: Sequence[float]) -> 'CreatureActions':
        return cls(float(outputs[0]), float(outputs[1]), float(outputs[2]),
                   float(outputs[3]), float(outputs[4]))

    def to_dict(self) -> dict:
        return {
            'move_x': self.move_x,
            'move_y': self.move_y,
            'eat': self.eat,
            'attack': self.attack,
            'reproduce': self.reproduce,
        }


@dataclass
class DecisionTrace:
    creature_id: str
    tick: int
    generation: int
    sensor_inputs: List[float]
    brain_outputs: List[float]
    actions: CreatureActions
    energy: float


class DecisionObserver(Protocol):
    def record_decision(self, trace: DecisionTrace) -> None:
        ...


class DecisionRecorder:
    """
    Keeps the most recent decisions of each creature.

    Satisfies DecisionObserver.
    """

    def __init__(self, history_length: int = 100):
        self.history_length = history_length
        self._history: Dict[str, Deque[DecisionTrace]] = defaultdict(
            lambda: deque(maxlen=self.history_length))

    def record_decision(self, trace: DecisionTrace) -> None:
        self._history[trace.creature_id].append(trace)

    def get_history(self, creature_id: str) -> List[DecisionTrace]:
        return list(self._history.get(creature_id, ()))

    def get_latest(self, creature_id: str) -> Optional[DecisionTrace]:
        history = self._history.get(creature_id)
        return history[-1] if history else None

    def action_frequencies(self, creature_id: str,
                           config: Optional[CreatureConfig] = None) -> Dict[str, float]:
        """
        Fraction of recorded ticks in which each discrete action fired.

        Args:
            creature_id: Creature to summarize
            config: Source of the firing thresholds (defaults to CreatureConfig())
        """
        config = config or CreatureConfig()
        thresholds = {
            'eat': config.eat_threshold,
            'attack': config.attack_threshold,
            'reproduce': config.reproduce_threshold,
        }
        history = self._history.get(creature_id)
        if not history:
            return {name: 0.0 for name in thresholds}

        return {
            name: sum(1 for t in history if getattr(t.actions, name) > limit) / len(history)
            for name, limit in thresholds.items()
        }

    def forget(self, creature_id: str):
        self._history.pop(creature_id, None)

    def clear(self):
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
