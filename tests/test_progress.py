"""
Unit tests for progress aggregation and the dashboard counters.
"""
from types import SimpleNamespace

import pytest

from domainflow.services.progress import (
    compute_progress,
    domain_stats,
    effective_completion,
    percent,
    progress_bucket,
)


def _task(completed, subtasks=None):
    return SimpleNamespace(completed=completed, subtasks=subtasks or [])


def test_no_tasks_means_zero_progress():
    p = compute_progress([])
    assert (p.total_tasks, p.completed_tasks, p.progress) == (0, 0, 0)


def test_counts_only_stored_flag():
    tasks = [_task(True), _task(False), _task(True), _task(False)]
    p = compute_progress(tasks)
    assert p.total_tasks == 4
    assert p.completed_tasks == 2
    assert p.progress == 50


@pytest.mark.parametrize(
    "done,total,expected",
    [(1, 8, 13), (1, 3, 33), (2, 3, 67), (1, 200, 1), (0, 7, 0), (7, 7, 100)],
)
def test_percent_rounds_halves_up(done, total, expected):
    assert percent(done, total) == expected


def test_percent_stays_in_range():
    for total in range(1, 40):
        for done in range(0, total + 1):
            assert 0 <= percent(done, total) <= 100
    # inconsistent inputs are clamped rather than overflowing
    assert percent(5, 3) == 100
    assert percent(-1, 3) == 0


def test_effective_completion_without_subtasks_uses_flag():
    assert effective_completion(_task(True)) is True
    assert effective_completion(_task(False)) is False


def test_effective_completion_follows_subtasks():
    done = SimpleNamespace(completed=True)
    open_ = SimpleNamespace(completed=False)
    assert effective_completion(_task(False, [done, done])) is True
    assert effective_completion(_task(True, [done, open_])) is False


def test_effective_completion_does_not_touch_stored_flag():
    task = _task(False, [SimpleNamespace(completed=True)])
    effective_completion(task)
    assert task.completed is False


def test_progress_bucket():
    assert progress_bucket(100) == "complete"
    assert progress_bucket(1) == "in_progress"
    assert progress_bucket(0) == "not_started"


def test_domain_stats_ignores_closed_domains():
    summaries = [
        SimpleNamespace(status="active", progress=100),
        SimpleNamespace(status="active", progress=40),
        SimpleNamespace(status="active", progress=0),
        SimpleNamespace(status="closed", progress=100),
    ]
    assert domain_stats(summaries) == {
        "active": 3,
        "complete": 1,
        "in_progress": 1,
        "not_started": 1,
    }
