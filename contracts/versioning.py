"""Schema version metadata and JSON persistence for analysis records."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from contracts.types import AnalysisResults, BallTrackingData

SCHEMA_VERSION = "1.0.0"
APP_VERSION = "0.4.0"


def make_envelope(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a payload with schema/app versions for serialization."""
    return {
        "schema_version": SCHEMA_VERSION,
        "app_version": APP_VERSION,
        "payload": payload,
    }


def dump_records(
    tracking_data: Sequence[BallTrackingData],
    results: Optional[AnalysisResults] = None,
) -> str:
    """Serialize tracking data and results to a JSON document."""
    payload = {
        "trackingData": [record.to_record() for record in tracking_data],
        "analysisResults": results.to_record() if results is not None else None,
    }
    return json.dumps(make_envelope(payload), indent=2)


def load_records(text: str) -> Tuple[List[BallTrackingData], Optional[AnalysisResults]]:
    """Inverse of ``dump_records``."""
    envelope = json.loads(text)
    if envelope.get("schema_version") != SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported schema version: {envelope.get('schema_version')} (expected {SCHEMA_VERSION})"
        )
    payload = envelope["payload"]
    tracking_data = [BallTrackingData.from_record(r) for r in payload["trackingData"]]
    results_record = payload.get("analysisResults")
    results = AnalysisResults.from_record(results_record) if results_record else None
    return tracking_data, results
