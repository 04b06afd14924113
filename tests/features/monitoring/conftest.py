"""BDD step definitions for monitoring features."""

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.monitoring.steps_helpers import (
    MeasuredFailure,
    MonitoringScenarioContext,
)
from tests.helpers import FakeClock

from perfwatch.core.models import MonitorConfig
from perfwatch.core.monitor import PerformanceMonitor


@pytest.fixture
def ctx() -> MonitoringScenarioContext:
    """Fresh scenario context for each test."""
    return MonitoringScenarioContext()


# === Given ===
@given("a performance monitor")
def step_monitor(ctx: MonitoringScenarioContext, clock: FakeClock) -> None:
    ctx.monitor = PerformanceMonitor(clock=clock)


@given(parsers.parse("a performance monitor with a retention period of {period:d} ms"))
def step_monitor_with_retention(
    ctx: MonitoringScenarioContext, clock: FakeClock, period: int
) -> None:
    ctx.monitor = PerformanceMonitor(
        MonitorConfig(retention_period=period), clock=clock
    )


@given(parsers.parse('"{name}" took {duration:d} ms'))
def step_recorded_timing(ctx: MonitoringScenarioContext, name: str, duration: int) -> None:
    ctx.active.record_timing(name, duration)


# === When ===
@when(parsers.parse('"{name}" takes {duration:d} ms'))
def step_timing(ctx: MonitoringScenarioContext, name: str, duration: int) -> None:
    ctx.active.record_timing(name, duration)


@when(parsers.parse("{count:d} warning alerts are created"))
def step_create_alerts(ctx: MonitoringScenarioContext, count: int) -> None:
    for i in range(1, count + 1):
        ctx.active.create_alert("custom", f"alert {i}", "warning")


@when(parsers.parse('"{name}" is measured and raises "{message}"'))
def step_measure_failure(ctx: MonitoringScenarioContext, name: str, message: str) -> None:
    def operation() -> None:
        raise MeasuredFailure(message)

    try:
        ctx.active.measure(name, operation)
    except MeasuredFailure as exc:
        ctx.raised = exc


@when(parsers.parse("{ms:d} ms pass and the monitor is swept"))
def step_sweep(ctx: MonitoringScenarioContext, clock: FakeClock, ms: int) -> None:
    clock.advance(ms)
    ctx.active.sweep()


@when(parsers.parse("{ms:d} ms pass and the monitor is reset"))
def step_reset(ctx: MonitoringScenarioContext, clock: FakeClock, ms: int) -> None:
    clock.advance(ms)
    ctx.active.reset()


@when(parsers.parse('the "{cache}" cache sees {operations}'))
def step_cache_events(ctx: MonitoringScenarioContext, cache: str, operations: str) -> None:
    for operation in operations.split(","):
        ctx.active.record_cache_event(cache, operation.strip())


# === Then ===
@then(
    parsers.re(r"there (?:is|are) (?P<count>\d+) active alerts?"),
    converters={"count": int},
)
def step_active_alert_count(ctx: MonitoringScenarioContext, count: int) -> None:
    assert len(ctx.active.get_alerts()) == count


@then(parsers.parse('the newest alert is "{level}" with message "{message}"'))
def step_newest_alert(ctx: MonitoringScenarioContext, level: str, message: str) -> None:
    newest = ctx.active.get_alerts()[-1]
    assert newest.level == level
    assert newest.message == message


@then(parsers.parse('the error "{message}" reaches the caller'))
def step_error_propagated(ctx: MonitoringScenarioContext, message: str) -> None:
    assert isinstance(ctx.raised, MeasuredFailure)
    assert str(ctx.raised) == message


@then(parsers.parse('"{name}" has {count:d} samples'))
def step_sample_count(ctx: MonitoringScenarioContext, name: str, count: int) -> None:
    assert len(ctx.active.get_metrics(name)) == count


@then(parsers.parse('"{name}" has {count:d} sample with success "{success}"'))
def step_sample_success(
    ctx: MonitoringScenarioContext, name: str, count: int, success: str
) -> None:
    samples = ctx.active.get_metrics(name)
    assert len(samples) == count
    assert all(str(s.metadata["success"]) == success for s in samples)


@then(parsers.parse("the report cache hit rate is {rate:f}"))
def step_report_hit_rate(ctx: MonitoringScenarioContext, rate: float) -> None:
    assert ctx.active.get_report().cache_hit_rate == pytest.approx(rate, abs=0.01)


@then(parsers.parse("the report uptime is {uptime:d}"))
def step_report_uptime(ctx: MonitoringScenarioContext, uptime: int) -> None:
    assert ctx.active.get_report().uptime == uptime


@then(parsers.parse("the report counts {count:d} metrics"))
def step_report_total(ctx: MonitoringScenarioContext, count: int) -> None:
    assert ctx.active.get_report().total_metrics == count
