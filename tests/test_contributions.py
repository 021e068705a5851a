"""Leftover collection and recurring goal contributions."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from budgetcycle.errors import InvalidCadenceError
from budgetcycle.models import Goal
from budgetcycle.services.contributions import (
    collect_leftovers,
    contribution_due,
    needs_leftover_collection,
    previous_cycle_leftover,
    process_contributions,
    run_recurring,
)

from tests.conftest import TODAY, assert_float_equal

NOW = datetime(2025, 6, 11, 9, 0)
CURRENT_WEEK = datetime(2025, 6, 9)


@pytest.fixture
def repos(budget_repo, transaction_repo, goal_repo):
    return {
        "budget_repo": budget_repo,
        "transaction_repo": transaction_repo,
        "goal_repo": goal_repo,
    }


def test_collects_positive_leftovers_into_flagged_goal(
    repos, user, budget_factory, transaction_factory, goal_factory
):
    goal = goal_factory(saved_amount=10.0, collect_leftovers=True)
    food = budget_factory(name="Food", goal_amount=100.0)
    fun = budget_factory(name="Fun", goal_amount=50.0)
    rent = budget_factory(name="Rent", goal_amount=400.0, kind="fixed-commitment")
    transaction_factory(food, 30.0, datetime(2025, 6, 3, 12, 0))
    transaction_factory(fun, 70.0, datetime(2025, 6, 4, 12, 0))
    # Current-week spending is not part of last cycle's leftover.
    transaction_factory(food, 25.0, datetime(2025, 6, 10, 12, 0))

    result = collect_leftovers(user_id=user.id, today=TODAY, **repos)

    assert result.goal_id == goal.id
    assert_float_equal(result.collected, 70.0)
    assert sorted(result.budgets_advanced) == sorted([food.id, fun.id])
    assert_float_equal(repos["goal_repo"].get_by_id(goal.id, user_id=user.id).saved_amount, 80.0)

    budget_repo = repos["budget_repo"]
    assert budget_repo.get_by_id(food.id, user_id=user.id).leftover_collected_until == CURRENT_WEEK
    assert budget_repo.get_by_id(fun.id, user_id=user.id).leftover_collected_until == CURRENT_WEEK
    assert budget_repo.get_by_id(rent.id, user_id=user.id).leftover_collected_until is None


def test_second_run_in_same_cycle_collects_nothing(
    repos, user, budget_factory, transaction_factory, goal_factory
):
    goal = goal_factory(collect_leftovers=True)
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 40.0, datetime(2025, 6, 3, 12, 0))

    first = collect_leftovers(user_id=user.id, today=TODAY, **repos)
    second = collect_leftovers(user_id=user.id, today=TODAY, **repos)

    assert_float_equal(first.collected, 60.0)
    assert second.collected == 0.0
    assert second.budgets_advanced == []
    assert_float_equal(repos["goal_repo"].get_by_id(goal.id, user_id=user.id).saved_amount, 60.0)


def test_next_cycle_collects_again(repos, user, budget_factory, transaction_factory, goal_factory):
    goal = goal_factory(collect_leftovers=True)
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 40.0, datetime(2025, 6, 3, 12, 0))
    transaction_factory(food, 90.0, datetime(2025, 6, 10, 12, 0))

    collect_leftovers(user_id=user.id, today=TODAY, **repos)
    later = collect_leftovers(user_id=user.id, today=TODAY + timedelta(days=7), **repos)

    assert_float_equal(later.collected, 10.0)
    assert_float_equal(repos["goal_repo"].get_by_id(goal.id, user_id=user.id).saved_amount, 70.0)


def test_without_collector_goal_nothing_changes(repos, user, budget_factory, goal_factory):
    goal_factory(collect_leftovers=False)
    food = budget_factory(goal_amount=100.0)

    result = collect_leftovers(user_id=user.id, today=TODAY, **repos)

    assert result.goal_id is None
    assert result.collected == 0.0
    assert repos["budget_repo"].get_by_id(food.id, user_id=user.id).leftover_collected_until is None


def test_overspent_budget_advances_without_contributing(
    repos, user, budget_factory, transaction_factory, goal_factory
):
    goal = goal_factory(collect_leftovers=True)
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 130.0, datetime(2025, 6, 3, 12, 0))

    result = collect_leftovers(user_id=user.id, today=TODAY, **repos)

    assert result.collected == 0.0
    assert result.budgets_advanced == [food.id]
    assert repos["goal_repo"].get_by_id(goal.id, user_id=user.id).saved_amount == 0.0


def test_stale_watermark_loses_the_race(repos, user, budget_factory, goal_factory):
    goal_factory(collect_leftovers=True)
    food = budget_factory(goal_amount=100.0)
    budget_repo = repos["budget_repo"]

    assert budget_repo.advance_leftover_watermark(
        food.id, expected=None, new=CURRENT_WEEK, user_id=user.id
    )
    # A second session still holding the old watermark must not win.
    assert not budget_repo.advance_leftover_watermark(
        food.id, expected=None, new=CURRENT_WEEK, user_id=user.id
    )


def test_concurrent_session_skips_budget_already_advanced(
    repos, user, budget_factory, transaction_factory, goal_factory, monkeypatch
):
    goal = goal_factory(collect_leftovers=True)
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 20.0, datetime(2025, 6, 3, 12, 0))
    budget_repo = repos["budget_repo"]

    # Another session advances the watermark after this one has read the budgets.
    original_list = budget_repo.list_all

    def list_then_race(*, user_id):
        rows = original_list(user_id=user_id)
        budget_repo.advance_leftover_watermark(food.id, expected=None, new=CURRENT_WEEK, user_id=user_id)
        return rows

    monkeypatch.setattr(budget_repo, "list_all", list_then_race)

    result = collect_leftovers(user_id=user.id, today=TODAY, **repos)

    assert result.collected == 0.0
    assert result.budgets_advanced == []
    assert repos["goal_repo"].get_by_id(goal.id, user_id=user.id).saved_amount == 0.0


def test_needs_leftover_collection_compares_against_cycle_start(budget_factory):
    assert needs_leftover_collection(budget_factory(), today=TODAY)
    assert not needs_leftover_collection(
        budget_factory(name="Done", leftover_collected_until=CURRENT_WEEK), today=TODAY
    )
    assert not needs_leftover_collection(budget_factory(name="Rent", kind="fixed-commitment"), today=TODAY)


def test_previous_cycle_leftover_can_be_negative(budget_factory, transaction_factory, transaction_repo):
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 115.0, datetime(2025, 6, 8, 23, 0))

    rows = transaction_repo.list_for_budget(food.id)

    assert_float_equal(previous_cycle_leftover(food, rows, today=TODAY), -15.0)


def test_contribution_applied_once_per_cycle(goal_repo, user, goal_factory):
    goal = goal_factory(saved_amount=100.0, cadence="weekly", contribution_amount=25.0)

    first = process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW)
    again = process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW + timedelta(hours=3))

    assert first == [goal.id]
    assert again == []
    stored = goal_repo.get_by_id(goal.id, user_id=user.id)
    assert_float_equal(stored.saved_amount, 125.0)
    assert stored.last_contribution_at == NOW


def test_contribution_resumes_next_cycle(goal_repo, user, goal_factory):
    goal = goal_factory(cadence="weekly", contribution_amount=25.0)

    process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW)
    credited = process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW + timedelta(days=7))

    assert credited == [goal.id]
    assert_float_equal(goal_repo.get_by_id(goal.id, user_id=user.id).saved_amount, 50.0)


def test_missed_cycles_catch_up_by_one_contribution(goal_repo, user, goal_factory):
    goal = goal_factory(
        cadence="weekly",
        contribution_amount=25.0,
        last_contribution_at=datetime(2025, 4, 1, 9, 0),
    )

    assert process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW) == [goal.id]
    assert_float_equal(goal_repo.get_by_id(goal.id, user_id=user.id).saved_amount, 25.0)


def test_paused_or_unconfigured_goals_are_skipped(goal_repo, user, goal_factory):
    goal_factory(name="Paused", cadence="weekly", contribution_amount=25.0, contribution_paused=True)
    goal_factory(name="Manual", contribution_amount=25.0)
    goal_factory(name="Zero", cadence="monthly", contribution_amount=0.0)

    assert process_contributions(goal_repo=goal_repo, user_id=user.id, now=NOW) == []


def test_stale_contribution_watermark_is_rejected(goal_repo, user, goal_factory):
    goal = goal_factory(cadence="weekly", contribution_amount=10.0)

    assert goal_repo.apply_contribution(goal.id, expected=None, amount=10.0, now=NOW, user_id=user.id)
    assert not goal_repo.apply_contribution(goal.id, expected=None, amount=10.0, now=NOW, user_id=user.id)
    assert_float_equal(goal_repo.get_by_id(goal.id, user_id=user.id).saved_amount, 10.0)


def test_contribution_due_rejects_unknown_cadence():
    goal = Goal(user_id=1, name="Odd", cadence="hourly", contribution_amount=5.0)

    with pytest.raises(InvalidCadenceError):
        contribution_due(goal, today=TODAY)


def test_monthly_goal_contribution_respects_anchor():
    goal = Goal(
        user_id=1,
        name="Car",
        cadence="monthly",
        anchor=date(2025, 1, 15),
        contribution_amount=50.0,
        last_contribution_at=datetime(2025, 5, 20, 8, 0),
    )

    assert not contribution_due(goal, today=date(2025, 6, 14))
    assert contribution_due(goal, today=date(2025, 6, 15))


def test_run_recurring_collects_then_contributes(
    repos, user, budget_factory, transaction_factory, goal_factory
):
    saver = goal_factory(name="Rainy day", collect_leftovers=True, cadence="weekly", contribution_amount=5.0)
    food = budget_factory(goal_amount=100.0)
    transaction_factory(food, 60.0, datetime(2025, 6, 3, 12, 0))

    report = run_recurring(user_id=user.id, now=NOW, **repos)

    assert report.leftovers.goal_id == saver.id
    assert_float_equal(report.leftovers.collected, 40.0)
    assert report.contributed_goal_ids == [saver.id]
    assert_float_equal(repos["goal_repo"].get_by_id(saver.id, user_id=user.id).saved_amount, 45.0)
