"""ZenFlow client facade."""

from zenflow_mcp.client.client import ZenFlowClient

__all__ = ["ZenFlowClient"]
