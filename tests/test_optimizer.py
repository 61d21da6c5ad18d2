"""Tests for the candidate search."""

from conftest import make_payload
from weekplanner.config import EngineConfig
from weekplanner.engine.optimizer import Budget, optimize
from weekplanner.services.availability import compute_availability
from weekplanner.services.normalizer import normalize_request


class FakeClock:
    """Clock advancing by ``step`` seconds on every read."""

    def __init__(self, step=0.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


def _prepare(payload):
    request = normalize_request(payload)
    return request, compute_availability(request)


def test_budget_exhaustion():
    clock = FakeClock(step=0.01)
    budget = Budget(25, clock)  # deadline at 0.025 s
    assert not budget.exhausted()  # 0.01
    assert not budget.exhausted()  # 0.02
    assert budget.exhausted()  # 0.03


def test_budget_without_deadline_never_runs_out():
    budget = Budget(None, FakeClock(step=100.0))
    assert not budget.exhausted()
    assert not budget.exhausted()


def test_slow_clock_does_not_change_default_search():
    payload = make_payload(
        employees=[
            {"id": "e1", "weeklyHours": 20, "preferredHours": ["13:00-17:00"]},
            {"id": "e2", "weeklyHours": 20},
        ],
        preferences={"prioritizeEmployeePreferences": True},
    )
    request, availability = _prepare(payload)
    fast = optimize(request, availability, clock=FakeClock())
    slow = optimize(request, availability, clock=FakeClock(step=10.0))
    assert fast.evaluated == slow.evaluated == 4
    assert fast.best.strategy == slow.best.strategy
    assert fast.best.schedule == slow.best.schedule


def test_all_candidates_evaluated_within_budget():
    request, availability = _prepare(make_payload(employees=[{"id": "e1"}, {"id": "e2"}]))
    outcome = optimize(request, availability, EngineConfig(), clock=FakeClock())
    assert outcome.evaluated == 4


def test_first_candidate_completes_when_budget_already_spent():
    request, availability = _prepare(make_payload(employees=[{"id": "e1"}, {"id": "e2"}]))
    outcome = optimize(request, availability, EngineConfig(), clock=FakeClock(step=10.0), time_budget_ms=50)
    assert outcome.evaluated == 1
    assert outcome.best.strategy.name == "balanced"
    assert outcome.best.completed
    assert all(outcome.best.schedule.day("e1", d).is_working for d in range(5))


def test_max_candidates_limits_search():
    request, availability = _prepare(make_payload(employees=[{"id": "e1"}, {"id": "e2"}]))
    outcome = optimize(request, availability, EngineConfig(), clock=FakeClock(), max_candidates=2)
    assert outcome.evaluated == 2


def test_ties_keep_earliest_strategy(payload):
    request, availability = _prepare(payload)
    outcome = optimize(request, availability, clock=FakeClock())
    assert outcome.best.strategy.name == "balanced"
    assert set(outcome.terms) == {"split", "uniformity", "balance", "employee_preferences"}


def test_equal_scores_keep_first_candidate():
    # Every strategy staggers the two employees by one hour, in some order.
    payload = make_payload(
        employees=[{"id": "e1", "weeklyHours": 35}, {"id": "e2", "weeklyHours": 35}],
        preferences={"favorUniformity": True},
    )
    request, availability = _prepare(payload)
    outcome = optimize(request, availability, clock=FakeClock())
    assert outcome.best.strategy.name == "balanced"
    assert outcome.terms["uniformity"] < 0


def test_preference_candidate_wins_when_preferences_weighted():
    payload = make_payload(
        employees=[
            {"id": "e1", "weeklyHours": 20, "preferredHours": ["13:00-17:00"]},
            {"id": "e2", "weeklyHours": 20},
        ],
        preferences={"prioritizeEmployeePreferences": True},
    )
    request, availability = _prepare(payload)
    outcome = optimize(request, availability, clock=FakeClock())
    assert outcome.evaluated == 4
    for day in outcome.best.schedule.week_of("e1"):
        if day.is_working:
            assert day.last_end == 1020
