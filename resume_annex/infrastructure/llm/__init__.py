"""LLM infrastructure: the generation contract."""

from .client import VertexRestClient, ServiceUnavailable

__all__ = ["VertexRestClient", "ServiceUnavailable"]
