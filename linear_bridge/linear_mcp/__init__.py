from linear_bridge.linear_mcp.linear_mcp_server import linear_client, linear_mcp_server

__all__ = ["linear_client", "linear_mcp_server"]
