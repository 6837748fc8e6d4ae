# v1
# file: callwait/events.py

"""
Defines event classes and the priority event queue for the call-center engine.
At equal timestamps, end-of-service events run before arrivals so a freed agent
can pick up a call arriving at that same instant; equal-kind ties keep
insertion order.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Iterable, List, Tuple

from .entities import Call, SystemState


class Event:
    """Base event storing the time and the call it concerns."""

    priority = 0

    def __init__(self, time: float, call: Call):
        self.time = time
        self.call = call

    def process(self, state: SystemState) -> None:  # pragma: no cover - interface only
        raise NotImplementedError("Subclasses must implement process().")

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(t={self.time:.2f})"


class CallArrivalEvent(Event):
    """The call enters the system and joins the back of the wait queue."""

    priority = 1

    def __init__(self, call: Call):
        super().__init__(call.arrival_time, call)

    def process(self, state: SystemState) -> None:
        state.wait_queue.append(self.call)


class EndOfServiceEvent(Event):
    """The agent finishes talking and becomes idle."""

    priority = 0

    def __init__(self, time: float, call: Call, agent_index: int):
        super().__init__(time, call)
        self.agent_index = agent_index

    def process(self, state: SystemState) -> None:
        state.agents.release(self.agent_index, self.call)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(t={self.time:.2f}, agent={self.agent_index})"


class EventQueue:
    """Min-heap priority queue keyed by (time, kind priority, insertion order)."""

    def __init__(self):
        self._q: List[Tuple[float, int, int, Event]] = []
        self._sequence = itertools.count()

    def push(self, event: Event) -> None:
        heapq.heappush(self._q, (event.time, event.priority, next(self._sequence), event))

    def pop(self) -> Event:
        return heapq.heappop(self._q)[-1]

    def empty(self) -> bool:
        return len(self._q) == 0

    def __len__(self) -> int:
        return len(self._q)

    def next_event_time(self) -> float:
        return self._q[0][0] if self._q else float("inf")

    def schedule_arrivals(self, calls: Iterable[Call]) -> None:
        """Seed the queue with one arrival per call, then heapify once."""
        for call in calls:
            event = CallArrivalEvent(call)
            self._q.append((event.time, event.priority, next(self._sequence), event))
        heapq.heapify(self._q)
