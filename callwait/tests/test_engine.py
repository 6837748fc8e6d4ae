import unittest

import numpy as np

from callwait.call_stream import generate_calls
from callwait.engine import simulate
from callwait.entities import AgentBank, Call, SimulationInvariantError
from callwait.events import CallArrivalEvent, EndOfServiceEvent, EventQueue
from callwait.stats import summarize_calls


class SimulationEngineTest(unittest.TestCase):
    """Event-loop behaviour on small hand-built call lists."""

    def test_single_agent_serves_simultaneous_arrivals_in_order(self) -> None:
        calls = [Call(0.0, 5.0) for _ in range(3)]
        simulate(calls, 1)
        self.assertEqual([c.answered_time for c in calls], [0.0, 5.0, 10.0])
        self.assertEqual([c.waiting for c in calls], [0.0, 5.0, 10.0])

    def test_enough_agents_means_nobody_waits(self) -> None:
        calls = [Call(0.0, duration) for duration in (1.0, 2.0, 3.0, 4.0)]
        simulate(calls, 4)
        self.assertTrue(all(c.waiting == 0 for c in calls))
        self.assertEqual([c.agent_index for c in calls], [0, 1, 2, 3])

    def test_freed_agent_takes_call_arriving_at_same_instant(self) -> None:
        first = Call(0.0, 2.0)
        second = Call(2.0, 1.0)
        simulate([first, second], 1)
        self.assertEqual(second.answered_time, 2.0)
        self.assertEqual(second.agent_index, 0)

    def test_waits_non_negative_on_random_day(self) -> None:
        rng = np.random.default_rng(3)
        calls = simulate(generate_calls(rng, 500, 5.0, 500.0), 3)
        for call in calls:
            self.assertGreaterEqual(call.waiting, 0.0)
            self.assertGreaterEqual(call.answered_time, call.arrival_time)

    def test_simulation_is_idempotent(self) -> None:
        rng = np.random.default_rng(4)
        calls = generate_calls(rng, 300, 5.0, 300.0)
        first = [c.answered_time for c in simulate(calls, 2)]
        second = [c.answered_time for c in simulate(calls, 2)]
        self.assertEqual(first, second)

    def test_thousand_calls_on_five_agents(self) -> None:
        rng = np.random.default_rng(5)
        calls = simulate(generate_calls(rng, 1000, 5.0, 2000.0), 5)
        waited = sum(1 for c in calls if c.waiting > 0)
        self.assertLess(waited, len(calls))
        summary = summarize_calls(calls, 5)
        self.assertTrue(np.isfinite(summary.p95))
        self.assertGreaterEqual(summary.p95, summary.median)
        self.assertLessEqual(summary.utilization, 1.0)

    def test_rejects_empty_agent_bank(self) -> None:
        with self.assertRaises(ValueError):
            simulate([Call(0.0, 1.0)], 0)

    def test_empty_call_list(self) -> None:
        self.assertEqual(simulate([], 3), [])


class InvariantTest(unittest.TestCase):
    """Internal consistency failures must surface as SimulationInvariantError."""

    def test_release_of_wrong_call(self) -> None:
        bank = AgentBank(2)
        held, other = Call(0.0, 1.0), Call(0.0, 1.0)
        bank.occupy(0, held)
        with self.assertRaises(SimulationInvariantError):
            bank.release(0, other)
        with self.assertRaises(SimulationInvariantError):
            bank.release(1, held)

    def test_call_answered_twice(self) -> None:
        call = Call(1.0, 1.0)
        call.answer(1.5, 0)
        with self.assertRaises(SimulationInvariantError):
            call.answer(2.0, 1)

    def test_call_answered_before_arrival(self) -> None:
        with self.assertRaises(SimulationInvariantError):
            Call(3.0, 1.0).answer(2.0, 0)

    def test_waiting_of_unanswered_call(self) -> None:
        with self.assertRaises(SimulationInvariantError):
            _ = Call(0.0, 1.0).waiting

    def test_invariant_error_is_an_assertion(self) -> None:
        self.assertTrue(issubclass(SimulationInvariantError, AssertionError))


class EventQueueTest(unittest.TestCase):
    def test_completion_runs_before_arrival_at_equal_time(self) -> None:
        queue = EventQueue()
        arriving, leaving = Call(2.0, 1.0), Call(0.0, 2.0)
        queue.push(CallArrivalEvent(arriving))
        queue.push(EndOfServiceEvent(2.0, leaving, 0))
        self.assertIsInstance(queue.pop(), EndOfServiceEvent)
        self.assertIsInstance(queue.pop(), CallArrivalEvent)
        self.assertTrue(queue.empty())

    def test_same_kind_ties_keep_insertion_order(self) -> None:
        queue = EventQueue()
        calls = [Call(1.0, 1.0) for _ in range(5)]
        queue.schedule_arrivals(calls)
        self.assertEqual(len(queue), 5)
        self.assertEqual(queue.next_event_time(), 1.0)
        popped = [queue.pop().call for _ in range(5)]
        self.assertEqual([id(c) for c in popped], [id(c) for c in calls])
        self.assertEqual(queue.next_event_time(), float("inf"))


if __name__ == "__main__":
    unittest.main()
