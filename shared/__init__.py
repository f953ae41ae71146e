"""
Shared utilities for the virtual football odds proxy.

This package aggregates common building blocks consumed by the proxy
service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- circuit_breaker: Per-endpoint failure tracking for upstream calls
- base_service: FastAPI application scaffolding

Any cross-cutting logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
