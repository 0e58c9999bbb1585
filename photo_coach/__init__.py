"""Photo Coach: photo critique with request resilience and cost accounting."""

__version__ = "0.1.0"
