# v1
# file: callwait/entities.py

"""
Defines the call entity and the per-run SystemState for the call-center engine.
Agent slots and the FIFO wait queue live here; event ordering belongs to events.py.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, List, Optional


class SimulationInvariantError(AssertionError):
    """Internal consistency failure in the simulation engine. Never recoverable."""


class Call:
    """One caller attempt with a fixed arrival time and talk duration (minutes)."""

    def __init__(self, arrival_time: float, talk_duration: float):
        self.arrival_time = arrival_time
        self.talk_duration = talk_duration
        self.answered_time: Optional[float] = None
        self.agent_index: Optional[int] = None

    @property
    def is_answered(self) -> bool:
        return self.answered_time is not None

    @property
    def ended_time(self) -> float:
        return self._answered() + self.talk_duration

    @property
    def waiting(self) -> float:
        return self._answered() - self.arrival_time

    def _answered(self) -> float:
        if self.answered_time is None:
            raise SimulationInvariantError(f"{self} has not been answered yet")
        return self.answered_time

    def answer(self, now: float, agent_index: int) -> None:
        if self.answered_time is not None:
            raise SimulationInvariantError(f"{self} answered twice (again at t={now:.4f})")
        if now < self.arrival_time:
            raise SimulationInvariantError(f"{self} answered at t={now:.4f} before arriving")
        self.answered_time = now
        self.agent_index = agent_index

    def reset(self) -> None:
        self.answered_time = None
        self.agent_index = None

    def __repr__(self) -> str:
        return f"Call(arrival={self.arrival_time:.4f}, talk={self.talk_duration:.4f}, answered={self.answered_time})"


class AgentBank:
    """Fixed array of agent slots; each is idle (None) or holds the call in service."""

    def __init__(self, agent_count: int):
        if agent_count < 1:
            raise ValueError(f"agent_count must be >= 1, got {agent_count}")
        self.slots: List[Optional[Call]] = [None] * agent_count

    def __len__(self) -> int:
        return len(self.slots)

    def idle_slots(self) -> Iterator[int]:
        """Idle slot indices, lowest first."""
        for idx, call in enumerate(self.slots):
            if call is None:
                yield idx

    def occupy(self, agent_index: int, call: Call) -> None:
        if self.slots[agent_index] is not None:
            raise SimulationInvariantError(f"Agent {agent_index} is already serving {self.slots[agent_index]}")
        self.slots[agent_index] = call

    def release(self, agent_index: int, call: Call) -> None:
        if self.slots[agent_index] is not call:
            raise SimulationInvariantError(
                f"Agent {agent_index} holds {self.slots[agent_index]}, expected to release {call}"
            )
        self.slots[agent_index] = None

    def busy_count(self) -> int:
        return sum(1 for call in self.slots if call is not None)


class WaitQueue:
    """Strict FIFO of calls that have arrived but have no agent yet."""

    def __init__(self):
        self._calls: Deque[Call] = deque()

    def append(self, call: Call) -> None:
        self._calls.append(call)

    def popleft(self) -> Call:
        return self._calls.popleft()

    def __len__(self) -> int:
        return len(self._calls)

    def __bool__(self) -> bool:
        return len(self._calls) > 0


class SystemState:
    """Agents and wait queue owned by a single engine invocation."""

    def __init__(self, agent_count: int):
        self.agents = AgentBank(agent_count)
        self.wait_queue = WaitQueue()
