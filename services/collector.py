"""Translate device readings into Prometheus gauge families."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Sequence, Tuple

from prometheus_client import (
    CollectorRegistry,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
)
from prometheus_client.core import GaugeMetricFamily

from models.records import AirReading
from services.device_client import DeviceClient, FetchError, build_default_client
from settings import get_settings

logger = logging.getLogger(__name__)

DEVICE_LABEL = "device"


@dataclass(frozen=True)
class MetricDescriptor:
    """Maps one reading attribute onto one gauge family."""

    name: str
    documentation: str
    field: str

    def family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation, labels=[DEVICE_LABEL])


METRIC_DESCRIPTORS: Tuple[MetricDescriptor, ...] = (
    MetricDescriptor("awair_score", "Awair score (0-100)", "score"),
    MetricDescriptor("awair_dew_point_celsius", "Dew point in Celsius", "dew_point"),
    MetricDescriptor("awair_temperature_celsius", "Temperature in Celsius", "temp"),
    MetricDescriptor(
        "awair_humidity_percent", "Relative humidity percentage (0-100)", "humid"
    ),
    MetricDescriptor(
        "awair_absolute_humidity_g_m3",
        "Absolute humidity in grams per cubic meter",
        "abs_humid",
    ),
    MetricDescriptor("awair_co2_ppm", "Carbon Dioxide in parts per million", "co2"),
    MetricDescriptor(
        "awair_co2_estimated_ppm",
        "Estimated Carbon Dioxide in parts per million",
        "co2_est",
    ),
    MetricDescriptor(
        "awair_co2_estimated_baseline",
        "CO2 sensor baseline value for estimation algorithm",
        "co2_est_baseline",
    ),
    MetricDescriptor(
        "awair_voc_ppb", "Volatile Organic Compounds in parts per billion", "voc"
    ),
    MetricDescriptor(
        "awair_voc_baseline",
        "VOC sensor baseline value for estimation algorithm",
        "voc_baseline",
    ),
    MetricDescriptor(
        "awair_voc_h2_raw", "Raw H2 sensor value for VOC calculation", "voc_h2_raw"
    ),
    MetricDescriptor(
        "awair_voc_ethanol_raw",
        "Raw ethanol sensor value for VOC calculation",
        "voc_ethanol_raw",
    ),
    MetricDescriptor(
        "awair_pm25_ug_m3",
        "Particulate Matter (2.5 microns) in micrograms per cubic meter",
        "pm25",
    ),
    MetricDescriptor(
        "awair_pm10_estimated_ug_m3",
        "Estimated Particulate Matter (10 microns) in micrograms per cubic meter",
        "pm10_est",
    ),
)


class AwairCollector:
    """Custom collector that polls every configured device on each scrape."""

    def __init__(self, hosts: Sequence[str], client: DeviceClient) -> None:
        self.hosts = tuple(hosts)
        self.client = client

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Lets the registry learn metric names without contacting devices.
        for descriptor in METRIC_DESCRIPTORS:
            yield descriptor.family()

    def fetch_readings(self) -> List[Tuple[str, AirReading]]:
        """Fetch each host in order, skipping (and logging) the ones that fail."""
        readings: List[Tuple[str, AirReading]] = []
        for host in self.hosts:
            try:
                reading = self.client.fetch(host)
            except FetchError as exc:
                logger.warning(
                    "Skipping device after failed fetch",
                    extra={"host": host, "reason": exc.reason},
                )
                continue
            readings.append((host, reading))
        return readings

    def collect(self) -> Iterator[GaugeMetricFamily]:
        readings = self.fetch_readings()
        for descriptor in METRIC_DESCRIPTORS:
            family = descriptor.family()
            for host, reading in readings:
                family.add_metric([host], float(getattr(reading, descriptor.field)))
            yield family


def build_registry(collector: AwairCollector) -> CollectorRegistry:
    """Private registry with the Awair collector plus process and runtime metrics."""
    registry = CollectorRegistry()
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    GCCollector(registry=registry)
    registry.register(collector)
    return registry


@lru_cache
def build_default_collector() -> AwairCollector:
    """Factory that wires the collector with configured hosts."""
    settings = get_settings()
    return AwairCollector(hosts=settings.hosts, client=build_default_client())
