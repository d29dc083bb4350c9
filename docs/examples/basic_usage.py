"""Basic usage examples"""

from powerkit import Logger, Metrics, MetricUnit, Tracer
from powerkit.middleware import CaptureLambdaHandler, InjectLambdaContext, LogMetrics, chain

# Service name, namespace and log level can also come from
# POWERTOOLS_SERVICE_NAME, POWERTOOLS_METRICS_NAMESPACE and LOG_LEVEL
logger = Logger(service="booking")
metrics = Metrics(namespace="ServerlessAirline", service="booking")
tracer = Tracer(service="booking")

logger.append_persistent_keys(team="airline")


@tracer.capture_method
def confirm_booking(booking_id):
    tracer.put_annotation("booking_id", booking_id)
    return {"booking_id": booking_id, "status": "confirmed"}


# Decorators
@logger.inject_lambda_context(log_event=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event, context):
    logger.append_keys(booking_id=event["booking_id"])
    metrics.add_dimension("environment", "prod")
    metrics.add_metric("SuccessfulBooking", MetricUnit.COUNT, 1)

    with metrics.single_metric("PaymentRetries", MetricUnit.COUNT, 2) as metric:
        metric.add_dimension("provider", "stripe")

    logger.info("Booking confirmed")
    return confirm_booking(event["booking_id"])


# Middleware chain
def lambda_handler(event, context):
    metrics.add_metric("SuccessfulBooking", MetricUnit.COUNT, 1)
    return confirm_booking(event["booking_id"])


chained_handler = chain(
    lambda_handler,
    InjectLambdaContext(logger),
    CaptureLambdaHandler(tracer),
    LogMetrics(metrics, capture_cold_start_metric=True),
)
