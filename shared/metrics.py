"""
Shared metrics configuration for the odds proxy.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, REGISTRY
from typing import Dict, Any, Optional, Tuple
import threading


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        if self.service_name == "proxy":
            self._setup_proxy_metrics()

    def _setup_proxy_metrics(self):
        """Set up proxy-specific metrics."""
        self._metrics["proxy_cache_outcomes_total"] = Counter(
            "proxy_cache_outcomes_total",
            "Proxy request outcomes by cache status",
            ["endpoint", "outcome"],
            registry=self.registry
        )

        self._metrics["proxy_upstream_requests_total"] = Counter(
            "proxy_upstream_requests_total",
            "Outbound upstream calls by classified result",
            ["endpoint", "result"],
            registry=self.registry
        )

        self._metrics["proxy_upstream_duration_seconds"] = Histogram(
            "proxy_upstream_duration_seconds",
            "Outbound upstream call duration in seconds",
            ["endpoint"],
            registry=self.registry
        )

        self._metrics["proxy_breaker_trips_total"] = Counter(
            "proxy_breaker_trips_total",
            "Circuit breaker trips per endpoint",
            ["endpoint"],
            registry=self.registry
        )

        self._metrics["proxy_requests_this_window"] = Gauge(
            "proxy_requests_this_window",
            "Outbound calls issued in the current budget window",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_cache_outcome(self, endpoint: str, outcome: str):
        """Record the terminal state of one proxied request."""
        self.increment_counter("proxy_cache_outcomes_total", endpoint=endpoint, outcome=outcome)

    def record_upstream_call(self, endpoint: str, result: str, duration: float):
        """Record one outbound call and how it was classified."""
        self.increment_counter("proxy_upstream_requests_total", endpoint=endpoint, result=result)
        self.observe_histogram("proxy_upstream_duration_seconds", duration, endpoint=endpoint)

    def record_breaker_trip(self, endpoint: str):
        self.increment_counter("proxy_breaker_trips_total", endpoint=endpoint)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            if labels:
                metric = metric.labels(**labels)
            metric.set(value)

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)


# Collectors register on a process-wide registry; building a second one for
# the same registry would raise on duplicate metric names.
_collectors: Dict[Tuple[str, int], MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    target = registry if registry is not None else REGISTRY
    cache_key = (service_name, id(target))
    with _collectors_lock:
        collector = _collectors.get(cache_key)
        if collector is None:
            collector = MetricsCollector(service_name, target)
            _collectors[cache_key] = collector
        return collector
