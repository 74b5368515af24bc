"""
Prometheus metrics for the cleanup tool

A cleanup run is a short-lived batch job, so instead of serving /metrics the
collected values are pushed to a Pushgateway when one is configured.

Usage:
    from prometheus_client import CollectorRegistry
    from utils.metrics import CleanupMetrics, push_metrics

    metrics = CleanupMetrics(registry=CollectorRegistry())
    metrics.record_promotion("catalog_product_entity_int", dry_run=False)
    push_metrics("pushgateway:9091", metrics.registry)
"""

import logging

from prometheus_client import CollectorRegistry, push_to_gateway

from .cleanup import CleanupMetrics

logger = logging.getLogger(__name__)


def push_metrics(
    gateway: str,
    registry: CollectorRegistry,
    job: str = "eav_scope_cleanup",
) -> None:
    """
    Push collected metrics to a Prometheus Pushgateway.

    Args:
        gateway: Pushgateway address (host:port)
        registry: Registry holding the run's metrics
        job: Job label for the pushed group
    """
    push_to_gateway(gateway, job=job, registry=registry)
    logger.info(f"Pushed metrics to {gateway} (job={job})")


__all__ = [
    "CleanupMetrics",
    "push_metrics",
]
