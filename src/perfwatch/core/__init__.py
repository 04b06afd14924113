"""Telemetry core: store, statistics, alerts, cache accounting, reports."""
