"""Units and storage resolutions accepted by the metrics backend"""

from enum import Enum
from typing import Union

from ..core.exceptions import MetricResolutionError, MetricUnitError


class MetricUnit(Enum):
    SECONDS = "Seconds"
    MICROSECONDS = "Microseconds"
    MILLISECONDS = "Milliseconds"
    BYTES = "Bytes"
    KILOBYTES = "Kilobytes"
    MEGABYTES = "Megabytes"
    GIGABYTES = "Gigabytes"
    TERABYTES = "Terabytes"
    BITS = "Bits"
    KILOBITS = "Kilobits"
    MEGABITS = "Megabits"
    GIGABITS = "Gigabits"
    TERABITS = "Terabits"
    PERCENT = "Percent"
    COUNT = "Count"
    BYTES_PER_SECOND = "Bytes/Second"
    KILOBYTES_PER_SECOND = "Kilobytes/Second"
    MEGABYTES_PER_SECOND = "Megabytes/Second"
    GIGABYTES_PER_SECOND = "Gigabytes/Second"
    TERABYTES_PER_SECOND = "Terabytes/Second"
    BITS_PER_SECOND = "Bits/Second"
    KILOBITS_PER_SECOND = "Kilobits/Second"
    MEGABITS_PER_SECOND = "Megabits/Second"
    GIGABITS_PER_SECOND = "Gigabits/Second"
    TERABITS_PER_SECOND = "Terabits/Second"
    COUNT_PER_SECOND = "Count/Second"
    NONE = "None"


class MetricResolution(Enum):
    STANDARD = 60
    HIGH = 1


def resolve_unit(unit: Union[MetricUnit, str]) -> MetricUnit:
    """Accept a MetricUnit, its value ("Count") or its name ("COUNT")"""
    if isinstance(unit, MetricUnit):
        return unit

    if isinstance(unit, str):
        for candidate in MetricUnit:
            if unit == candidate.value or unit.upper() == candidate.name:
                return candidate

    raise MetricUnitError(
        f"Invalid metric unit '{unit}', expected one of: "
        f"{', '.join(u.value for u in MetricUnit)}"
    )


def resolve_resolution(resolution: Union[MetricResolution, int]) -> MetricResolution:
    if isinstance(resolution, MetricResolution):
        return resolution

    if isinstance(resolution, int) and not isinstance(resolution, bool):
        for candidate in MetricResolution:
            if resolution == candidate.value:
                return candidate

    raise MetricResolutionError(
        f"Invalid metric resolution '{resolution}', expected one of: "
        f"{', '.join(str(r.value) for r in MetricResolution)}"
    )
