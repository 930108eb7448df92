"""Observability infrastructure for the Questionnaire API."""

from questionnaire_api.observability.logging import configure_logging, get_logger
from questionnaire_api.observability.metrics import metrics_registry, setup_metrics

__all__ = ["configure_logging", "get_logger", "metrics_registry", "setup_metrics"]
