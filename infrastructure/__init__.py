"""Infrastructure layer — operational concerns for the Mix Doctor engine.

Modules:
    metrics     Prometheus metrics registry.
"""
