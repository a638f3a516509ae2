from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool as FastMCPTool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import PrivateAttr
from linear_bridge.core.config import settings
from linear_bridge.linear_mcp.catalog import build_tools
from linear_bridge.linear_mcp.tool import Tool, ToolContext
from linear_bridge.services.linear_client import LinearClient
import logging

logger = logging.getLogger(__name__)

linear_client = LinearClient(
    api_key=settings.LINEAR_API_KEY,
    api_url=settings.LINEAR_API_URL,
)

tool_context = ToolContext(
    settings=settings,
    linear=linear_client,
    logger=logging.getLogger("linear_bridge.tools"),
)

linear_mcp_server = FastMCP(
    name="Linear MCP Server",
    mask_error_details=not settings.DEBUG
)


class ContractTool(FastMCPTool):
    """Exposes a bound catalog :class:`Tool` through FastMCP."""

    _contract: Tool = PrivateAttr()

    @classmethod
    def wrap(cls, contract: Tool) -> "ContractTool":
        tool = cls(
            name=contract.name,
            description=contract.description,
            parameters=contract.input_schema,
        )
        tool._contract = contract
        return tool

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        response = await self._contract.invoke(arguments)
        text = response.text()
        if response.is_error:
            # FastMCP turns ToolError into an isError result, unmasked
            raise ToolError(text)
        return ToolResult(content=[TextContent(type="text", text=text)])


def register_tools(server: FastMCP, context: ToolContext) -> list[ContractTool]:
    registered = []
    for contract in build_tools(context):
        registered.append(server.add_tool(ContractTool.wrap(contract)))
    logger.info(f"Registered {len(registered)} Linear tools on {server.name}")
    return registered


register_tools(linear_mcp_server, tool_context)


def main():
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info("Starting Linear MCP server over stdio")
    linear_mcp_server.run()


if __name__ == "__main__":
    main()
