"""Tests for NDJSON and JSON encoding."""

import json

import pytest

from perfwatch.core.encoding.ndjson import (
    encode_alerts,
    encode_samples,
    encode_snapshot,
)
from perfwatch.core.models import Alert, Sample, Statistics


class TestEncodeSamples:
    """Tests for sample NDJSON encoding."""

    @pytest.mark.core
    def test_encode_empty_returns_empty_string(self) -> None:
        assert encode_samples([]) == ""

    @pytest.mark.core
    def test_encode_single_sample(self) -> None:
        sample = Sample(
            name="db.query.timing",
            value=12.5,
            timestamp=1000,
            metadata={"success": True},
            kind="timing",
        )

        result = encode_samples([sample])

        assert result.endswith("\n")
        assert json.loads(result) == {
            "name": "db.query.timing",
            "value": 12.5,
            "timestamp": 1000,
            "kind": "timing",
            "metadata": {"success": True},
        }

    @pytest.mark.core
    def test_encode_one_line_per_sample(self) -> None:
        samples = [Sample(name="x", value=i, timestamp=i) for i in range(3)]

        lines = encode_samples(samples).strip().split("\n")

        assert [json.loads(line)["value"] for line in lines] == [0, 1, 2]

    @pytest.mark.core
    def test_non_json_metadata_falls_back_to_str(self) -> None:
        class Order:
            def __str__(self) -> str:
                return "order-42"

        sample = Sample(name="x", value=1, timestamp=1, metadata={"order": Order()})

        assert json.loads(encode_samples([sample]))["metadata"]["order"] == "order-42"


class TestEncodeAlertsAndSnapshots:
    """Tests for alert and snapshot encoding."""

    @pytest.mark.core
    def test_encode_alert(self) -> None:
        alert = Alert(
            id="abc",
            type="memory",
            message="High memory usage: 60.0MB",
            level="warning",
            timestamp=1000,
            metadata={"memory_usage": 60.0},
        )

        decoded = json.loads(encode_alerts([alert]))

        assert decoded["id"] == "abc"
        assert decoded["level"] == "warning"
        assert decoded["active"] is True
        assert decoded["metadata"] == {"memory_usage": 60.0}

    @pytest.mark.core
    def test_encode_alerts_empty(self) -> None:
        assert encode_alerts([]) == ""

    @pytest.mark.core
    def test_encode_statistics(self) -> None:
        stats = Statistics(count=2, average=1.5, min=1, max=2, total=3)

        assert json.loads(encode_snapshot(stats)) == {
            "count": 2,
            "average": 1.5,
            "min": 1,
            "max": 2,
            "total": 3,
        }
