"""Encoders for exporting telemetry."""

from perfwatch.core.encoding.ndjson import (
    encode_alerts,
    encode_samples,
    encode_snapshot,
)

__all__ = ["encode_alerts", "encode_samples", "encode_snapshot"]
