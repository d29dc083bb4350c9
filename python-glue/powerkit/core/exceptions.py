"""Exceptions raised by the instrumentation utilities"""


class PowerkitError(Exception):
    """Base class for all errors raised by powerkit"""
    pass


class InvalidLoggerSamplingRateError(PowerkitError, ValueError):
    """Sampling rate is not a number between 0 and 1"""
    pass


class MetricUnitError(PowerkitError, ValueError):
    """Metric unit is not one of the supported units"""
    pass


class MetricResolutionError(PowerkitError, ValueError):
    """Metric resolution is not one of the supported resolutions"""
    pass


class MetricValueError(PowerkitError, ValueError):
    """Metric value is not a number"""
    pass


class SchemaValidationError(PowerkitError, ValueError):
    """Metric set does not fit the embedded metric format constraints"""
    pass
