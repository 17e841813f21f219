"""Item service: CRUD records over a durable store with a resilient cache-aside layer."""

__version__ = "1.0.0"
