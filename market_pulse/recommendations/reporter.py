"""
Recommendation report writer: JSON and CSV output.

All functions are pure I/O over in-memory ``Recommendation`` lists.

Output files (written by ``market-pulse recommend --output-dir``)
-----------------------------------------------------------------
  {output_dir}/recommendations_{date}.json  -- full structured records
  {output_dir}/recommendations_{date}.csv   -- one row per symbol, flat
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from market_pulse.models.recommendation import Recommendation

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "v1"

CSV_FIELDS = [
    "symbol", "action", "confidence", "current_price", "target", "stop_loss",
    "timeframe", "expected_return", "probability_of_success", "risk_level",
    "net_score", "quote_source", "quote_synthetic", "reason",
]


def recommendation_to_dict(rec: Recommendation) -> dict[str, Any]:
    """Flatten a recommendation into JSON-ready primitives.

    Percent ranges are rendered both as display strings (``"12-18%"``) and as
    numeric bounds.
    """
    return {
        "symbol":                 rec.symbol,
        "action":                 rec.action.value,
        "confidence":             rec.confidence.value,
        "current_price":          rec.current_price,
        "target":                 rec.target,
        "stop_loss":              rec.stop_loss,
        "timeframe":              rec.timeframe,
        "expected_return":        str(rec.expected_return),
        "expected_return_range":  [rec.expected_return.low, rec.expected_return.high],
        "probability_of_success": str(rec.probability_of_success),
        "probability_range": [
            rec.probability_of_success.low,
            rec.probability_of_success.high,
        ],
        "risk_level":             rec.risk_level.value,
        "decision_factors":       list(rec.decision_factors),
        "risk_factors":           list(rec.risk_factors),
        "catalysts":              list(rec.catalysts),
        "reason":                 rec.reason,
        "scores": {
            "net":     rec.net_score,
            "bullish": rec.bullish_score,
            "bearish": rec.bearish_score,
        },
        "quote_source":           rec.quote_source,
        "quote_synthetic":        rec.quote_synthetic,
        "generated_at":           rec.generated_at.isoformat(),
    }


def recommendations_payload(recs: Sequence[Recommendation]) -> dict[str, Any]:
    return {
        "schema_version":  SCHEMA_VERSION,
        "count":           len(recs),
        "recommendations": [recommendation_to_dict(r) for r in recs],
    }


def write_recommendations_json(
    recs: Sequence[Recommendation],
    output_dir: Path,
    run_date: date | None = None,
) -> Path:
    """Write recommendations to ``recommendations_{date}.json``.

    Args:
        recs:       Recommendations in display order.
        output_dir: Target directory (created if missing).
        run_date:   Date label. Defaults to today.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"recommendations_{run_date}.json"
    json_path.write_text(
        json.dumps(recommendations_payload(recs), indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
    logger.info("Recommendation JSON written: %s (%d records)", json_path, len(recs))
    return json_path


def write_recommendations_csv(
    recs: Sequence[Recommendation],
    output_dir: Path,
    run_date: date | None = None,
) -> Path:
    """Write one flat row per recommendation to ``recommendations_{date}.csv``.

    Columns: see ``CSV_FIELDS``.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"recommendations_{run_date}.csv"

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for rec in recs:
            writer.writerow(
                {
                    "symbol":                 rec.symbol,
                    "action":                 rec.action.value,
                    "confidence":             rec.confidence.value,
                    "current_price":          rec.current_price,
                    "target":                 rec.target,
                    "stop_loss":              rec.stop_loss,
                    "timeframe":              rec.timeframe,
                    "expected_return":        str(rec.expected_return),
                    "probability_of_success": str(rec.probability_of_success),
                    "risk_level":             rec.risk_level.value,
                    "net_score":              rec.net_score,
                    "quote_source":           rec.quote_source,
                    "quote_synthetic":        rec.quote_synthetic,
                    "reason":                 rec.reason,
                }
            )

    logger.info("Recommendation CSV written: %s", csv_path)
    return csv_path
