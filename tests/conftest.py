"""Pytest fixtures for mirro tests."""

from datetime import datetime, timedelta, timezone

import pytest

from mirro.keys import Key, classify
from mirro.state import AppState, ItemsLoaded, KeyPressed, Outcome, Resized, reduce
from mirro.types import Country, Mirror, MirrorStatus, Protocol

LAST_CHECK = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


def make_mirror(
    host: str,
    protocol: Protocol = Protocol.HTTPS,
    score: float | None = 1.0,
    hours_behind: float | None = 1,
    **kwargs,
) -> Mirror:
    scheme = protocol.value
    last_sync = None if hours_behind is None else LAST_CHECK - timedelta(hours=hours_behind)
    return Mirror(
        url=f"{scheme}://{host}/archlinux/",
        protocol=protocol,
        score=score,
        last_sync=last_sync,
        completion_pct=kwargs.pop("completion_pct", 1.0),
        **kwargs,
    )


def make_country(code: str, name: str, count: int, protocols=(Protocol.HTTPS, Protocol.HTTP)) -> Country:
    mirrors = tuple(
        make_mirror(f"m{i}.{code.lower()}.example.org", protocols[i % len(protocols)], score=float(i))
        for i in range(count)
    )
    return Country(code=code, name=name, mirrors=mirrors)


@pytest.fixture
def scenario_status():
    """Alpha (2 mirrors), Beta (none), Gamma (5)."""
    return MirrorStatus(
        countries=(
            make_country("AL", "Alpha", 2),
            make_country("BE", "Beta", 0),
            make_country("GA", "Gamma", 5),
        ),
        last_check=LAST_CHECK,
    )


@pytest.fixture
def ready_state(scenario_status):
    """A READY dashboard over the scenario data with a 2-row viewport."""
    state = reduce(AppState(), ItemsLoaded(scenario_status)).state
    return reduce(state, Resized(2)).state


@pytest.fixture
def press():
    """Feed raw key strings through the reducer.

    Returns the final state and the list of outcomes.
    """

    def _press(state, *raws):
        outcomes = []
        for raw in raws:
            key = raw if isinstance(raw, Key) else classify(raw)
            transition = reduce(state, KeyPressed(key))
            state = transition.state
            outcomes.append(transition.outcome)
        return state, outcomes

    return _press


@pytest.fixture
def exited():
    def _exited(outcomes):
        return outcomes[-1] is Outcome.EXIT

    return _exited
