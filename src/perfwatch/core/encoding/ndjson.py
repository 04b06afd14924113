"""NDJSON and JSON encoders for samples, alerts and snapshots."""

import json
from collections.abc import Iterable
from typing import Any

from perfwatch.core.models import Alert, Report, Sample, Statistics


def sample_to_dict(sample: Sample) -> dict[str, Any]:
    return {
        "name": sample.name,
        "value": sample.value,
        "timestamp": sample.timestamp,
        "kind": sample.kind,
        "metadata": dict(sample.metadata),
    }


def alert_to_dict(alert: Alert) -> dict[str, Any]:
    return {
        "id": alert.id,
        "type": alert.type,
        "message": alert.message,
        "level": alert.level,
        "timestamp": alert.timestamp,
        "active": alert.active,
        "metadata": dict(alert.metadata),
    }


def _encode_lines(objects: Iterable[dict[str, Any]]) -> str:
    # Metadata may carry arbitrary host objects; fall back to their str().
    lines = [json.dumps(obj, default=str) for obj in objects]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def encode_samples(samples: Iterable[Sample]) -> str:
    """Encode samples to newline-delimited JSON.

    Args:
        samples: An iterable of Sample objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no samples.
    """
    return _encode_lines(sample_to_dict(s) for s in samples)


def encode_alerts(alerts: Iterable[Alert]) -> str:
    """Encode alerts to newline-delimited JSON.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no alerts.
    """
    return _encode_lines(alert_to_dict(a) for a in alerts)


def encode_snapshot(snapshot: Report | Statistics) -> str:
    """Encode a report or statistics snapshot as a single JSON object."""
    return json.dumps(snapshot.to_dict())
