# stock_pulse/data/history.py
"""
Conversion of request_history candles into chart points
"""
import logging
from typing import Any, List

import numpy as np
import pandas as pd

from stock_pulse.utils import format_event_time
from .models import ChartPoint

logger = logging.getLogger(__name__)


def candles_to_points(candles: List[Any], limit: int = 50, tz=None) -> List[ChartPoint]:
    """
    Take the last `limit` candles (oldest first) and turn each into a chart
    point priced at its close and labelled with its open time (HH:MM).

    Non-numeric closes become 0.0; rows that are not mappings are skipped.
    """
    if not candles or limit <= 0:
        return []

    rows = [candle for candle in candles if isinstance(candle, dict)]
    if not rows:
        logger.debug(f"No usable candles in history of {len(candles)} items")
        return []

    frame = pd.DataFrame(rows).reindex(columns=['open_time', 'close']).tail(limit)

    prices = (
        pd.to_numeric(frame['close'], errors='coerce')
        .replace([np.inf, -np.inf], np.nan)
        .fillna(0.0)
    )
    open_times = pd.to_numeric(frame['open_time'], errors='coerce')

    return [
        ChartPoint(
            time=format_event_time(None if pd.isna(open_ms) else open_ms, with_seconds=False, tz=tz),
            price=float(price),
        )
        for open_ms, price in zip(open_times, prices)
    ]
