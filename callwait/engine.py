# v1
# file: callwait/engine.py

"""
Event-driven engine for a single FIFO queue served by a bank of identical agents.
Runs a list of calls to completion and fills in each call's answered time.
"""

from __future__ import annotations

from typing import List

from .entities import Call, SimulationInvariantError, SystemState
from .events import EndOfServiceEvent, EventQueue


def _assign_waiting_calls(state: SystemState, event_queue: EventQueue, now: float) -> None:
    """Hand queued calls to idle agents, lowest agent index first."""
    for agent_index in state.agents.idle_slots():
        if not state.wait_queue:
            return
        call = state.wait_queue.popleft()
        call.answer(now, agent_index)
        state.agents.occupy(agent_index, call)
        event_queue.push(EndOfServiceEvent(call.ended_time, call, agent_index))


def simulate(calls: List[Call], agent_count: int) -> List[Call]:
    """Simulate the whole call list from scratch; returns the same list, answered."""
    if agent_count < 1:
        raise ValueError(f"agent_count must be >= 1, got {agent_count}")
    for call in calls:
        call.reset()

    state = SystemState(agent_count)
    event_queue = EventQueue()
    event_queue.schedule_arrivals(calls)

    while not event_queue.empty():
        event = event_queue.pop()
        event.process(state)
        _assign_waiting_calls(state, event_queue, event.time)

    if state.wait_queue:
        raise SimulationInvariantError(f"{len(state.wait_queue)} calls still waiting after the event queue drained")
    if state.agents.busy_count():
        raise SimulationInvariantError(f"{state.agents.busy_count()} agents still busy after the event queue drained")
    return calls
