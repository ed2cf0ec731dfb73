"""Domain models shared across services."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AirReading(BaseModel):
    """Latest sensor snapshot returned by a device's ``/air-data/latest`` route."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    timestamp: datetime
    score: float
    dew_point: float
    temp: float
    humid: float
    abs_humid: float
    co2: float
    co2_est: float
    co2_est_baseline: float
    voc: float
    voc_baseline: float
    voc_h2_raw: float
    voc_ethanol_raw: float
    pm25: float
    pm10_est: float
