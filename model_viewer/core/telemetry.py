from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from model_viewer.core.config import settings


def setup_telemetry():
    """Spans for viewer init, uploads, translations and manifest fetches."""
    resource = Resource.create(
        {
            "service.name": settings.APP_NAME,
            "deployment.environment": settings.ENV,
            "aps.region": settings.APS_REGION,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)


tracer = trace.get_tracer("model_viewer")
