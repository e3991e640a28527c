"""Infrastructure modules for the notification engine.

Centralized infrastructure components:
- configuration: Settings management (settings, DeliverySettings, ...)
- logging: Structured logging (configure_logging, get_module_logger,
  bind_delivery_context)
- operations: Operation status/result types and transport error classification
- resilience: Exponential backoff policy for delivery retries
"""
