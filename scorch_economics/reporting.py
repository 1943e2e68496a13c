import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
import numpy as np
import pandas as pd

from . import token_config
from .errors import ScorchError
from .fixed_point import from_base_units
from .ledger import Ledger
from .params import SECONDS_PER_DAY, VESTING_CLIFF, VESTING_TOTAL
from .vesting import VestingSchedule, vested_at

logger = logging.getLogger(__name__)


class ReportingError(ScorchError):
    """Base exception for report output errors."""
    pass


def _tokens(amount: int) -> float:
    return float(from_base_units(amount))


def release_table(
    total_amount: int,
    start: int,
    claimed: int = 0,
    months: int = 13,
    step_days: int = 30,
    cliff: int = VESTING_CLIFF,
    duration: int = VESTING_TOTAL,
) -> pd.DataFrame:
    """
    Cumulative release of one entitlement at ``months`` evenly spaced steps.

    Base-unit columns hold Python ints (object dtype), since 18-decimal
    amounts overflow int64 above ~9.2 whole tokens.
    """
    if months <= 0 or step_days <= 0:
        raise ValueError("months and step_days must be positive")

    timestamps = start + np.arange(months, dtype=np.int64) * step_days * SECONDS_PER_DAY
    vested = np.zeros(months, dtype=object)
    releasable = np.zeros(months, dtype=object)

    for month, timestamp in enumerate(timestamps):
        vested[month] = vested_at(total_amount, start, int(timestamp), cliff, duration)
        releasable[month] = max(vested[month] - claimed, 0)

    return pd.DataFrame({
        'month': np.arange(months),
        'day': np.arange(months) * step_days,
        'timestamp': timestamps,
        'vested': vested,
        'releasable': releasable,
        'claimed': [claimed] * months,
        'vested_tokens': [_tokens(v) for v in vested],
        'vested_pct': [v * 100 / total_amount if total_amount else 0.0 for v in vested],
    })


def project_release_schedule(
    schedule: VestingSchedule,
    beneficiary: str,
    months: int = 13,
    step_days: int = 30,
) -> pd.DataFrame:
    """Project a beneficiary's release from the schedule's start time without mutating it."""
    info = schedule.vesting_info(beneficiary)
    start = schedule.vesting_start_time
    if start == 0:
        raise ReportingError("Presale: Vesting has not started, nothing to project")
    return release_table(
        info.total_amount,
        start,
        claimed=info.claimed_amount,
        months=months,
        step_days=step_days,
        cliff=schedule.cliff,
        duration=schedule.duration,
    )


def ledger_snapshot(ledger: Ledger) -> pd.DataFrame:
    """Holders sorted by balance, with their share of total supply."""
    supply = ledger.total_supply()
    holders = sorted(ledger.balances().items(), key=lambda item: item[1], reverse=True)

    return pd.DataFrame({
        'address': [address for address, _ in holders],
        'balance': pd.Series([balance for _, balance in holders], dtype=object),
        'tokens': [_tokens(balance) for _, balance in holders],
        'share': [balance / supply if supply else 0.0 for _, balance in holders],
    })


def frame_to_records(df: pd.DataFrame) -> list:
    records = []
    for row in df.to_dict(orient="records"):
        records.append({k: (v.item() if isinstance(v, np.generic) else v) for k, v in row.items()})
    return records


def _build_paths(source: str):
    timestamp = datetime.now(timezone.utc)
    year_month = timestamp.strftime('%Y-%m')
    date = timestamp.strftime('%Y-%m-%d')
    filename = f"{source}_{timestamp.strftime('%H%M%S')}.json"
    return year_month, date, filename


def save_output(
    data: Dict[str, Any],
    source: str,
    local_mode: Optional[bool] = None,
    output_dir: Optional[str] = None,
    s3_client=None,
) -> str:
    """
    Save a JSON report either to the local filesystem (dev) or to S3 (prod),
    based on LOCAL_MODE. Returns the written path or S3 key.
    """
    local_mode = token_config.LOCAL_MODE if local_mode is None else local_mode
    output_dir = output_dir or token_config.OUTPUT_DIR
    year_month, date, filename = _build_paths(source)
    body = json.dumps(data, indent=2, default=str)

    if local_mode:
        folder = os.path.join(output_dir, year_month, date)
        os.makedirs(folder, exist_ok=True)
        filepath = os.path.join(folder, filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(body)
        logger.info("Saved report locally: %s", filepath)
        return filepath

    if not token_config.S3_BUCKET or not token_config.S3_PATH:
        raise ReportingError("S3 configuration missing (S3_BUCKET/S3_PATH).")

    s3_key = f"{token_config.S3_PATH}/{year_month}/{date}/{filename}"
    client = s3_client or boto3.client("s3")
    client.put_object(
        Bucket=token_config.S3_BUCKET,
        Key=s3_key,
        Body=body,
        ContentType="application/json",
    )
    logger.info("Saved report to S3: %s", s3_key)
    return s3_key
