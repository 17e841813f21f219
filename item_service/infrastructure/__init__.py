"""
Infrastructure Layer

Adapters for the external dependencies: durable store, cache and monitoring.
"""
