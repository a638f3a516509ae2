"""Uniform invocation contract shared by every Linear tool.

A :class:`Tool` is created unbound, receives its :class:`ToolContext` through
:meth:`Tool.bind`, and from then on turns raw MCP arguments into a
:class:`ToolResponse`: invalid arguments produce a validation summary, handler
failures produce an error envelope, and nothing escapes to the caller except
the programming error of invoking an unbound tool.
"""
import logging
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from linear_bridge.services.errors import LinearAuthError
from linear_bridge.services.linear_client import LinearClient

if TYPE_CHECKING:
    from linear_bridge.core.config import Settings

STACK_FRAMES = 3
DEBUG_HINT = "For more detailed diagnostics, retry with debug: true in the input."


class ToolNotInitializedError(RuntimeError):
    """A tool was invoked before a context was bound to it."""


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent]
    is_error: Optional[bool] = Field(default=None, alias="isError")

    @classmethod
    def from_text(cls, text: str, is_error: Optional[bool] = None) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], is_error=is_error)

    def text(self) -> str:
        return "\n".join(block.text for block in self.content)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolInput(BaseModel):
    """Base for tool arguments: camelCase on the wire, ``debug`` everywhere."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    debug: bool = Field(default=False, description="Debug mode to show extra diagnostics")


@dataclass
class ToolContext:
    settings: "Settings"
    linear: LinearClient
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("linear_bridge.tools"))

    @property
    def api_key_configured(self) -> bool:
        return bool(getattr(self.settings, "LINEAR_API_KEY", None))

    def client(self) -> LinearClient:
        if not self.api_key_configured:
            raise LinearAuthError("LINEAR_API_KEY is not configured")
        return self.linear


Handler = Callable[[ToolContext, Any], Awaitable[Union[str, ToolResponse, dict[str, Any]]]]


class Tool:
    def __init__(
        self,
        name: str,
        description: str,
        input_model: type[ToolInput],
        handler: Handler,
        action: str,
    ):
        self.name = name
        self.description = description
        self.input_model = input_model
        self.handler = handler
        self.action = action
        self._context: Optional[ToolContext] = None

    @property
    def ready(self) -> bool:
        return self._context is not None

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema(by_alias=True)

    def bind(self, context: ToolContext) -> "Tool":
        self._context = context
        return self

    async def invoke(self, raw_args: Optional[dict[str, Any]]) -> ToolResponse:
        if self._context is None:
            raise ToolNotInitializedError(f'Tool "{self.name}" has not been initialized with context.')

        context = self._context
        try:
            args = self.input_model.model_validate(raw_args or {})
        except ValidationError as e:
            context.logger.info(f"Rejected arguments for {self.name}: {e.error_count()} error(s)")
            return ToolResponse.from_text(_validation_summary(self.name, e), is_error=False)

        try:
            result = await self.handler(context, args)
            if isinstance(result, str):
                return ToolResponse.from_text(result)
            return ToolResponse.model_validate(result)
        except Exception as e:
            stack = "".join(traceback.format_tb(e.__traceback__)[-STACK_FRAMES:])
            context.logger.error(
                f"Error {self.action} in tool {self.name}: {e} ({type(e).__name__})\n{stack}"
            )
            return ToolResponse.from_text(self._failure_message(context, args, e), is_error=True)

    def _failure_message(self, context: ToolContext, args: ToolInput, error: Exception) -> str:
        message = f"Error {self.action}: {error}"
        if not args.debug:
            return f"{message}\n\n{DEBUG_HINT}"

        lines = [message, "", "=== DETAILED DEBUG INFORMATION ===", "Parameters:"]
        for key, value in args.model_dump(by_alias=True, exclude={"debug"}).items():
            lines.append(f"- {key}: {'<not specified>' if value is None else value}")
        key_status = (
            "API key is configured"
            if context.api_key_configured
            else "API key is NOT configured - set LINEAR_API_KEY"
        )
        lines += ["", f"Linear API Status: {key_status}", f"Error type: {type(error).__name__}"]
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            lines.append(f"Error code: {status_code}")
        return "\n".join(lines)


def _validation_summary(tool_name: str, error: ValidationError) -> str:
    lines = [f"Validation Error: invalid arguments for {tool_name}"]
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "<root>"
        lines.append(f"- {location}: {detail['msg']}")
    return "\n".join(lines)


@dataclass(frozen=True)
class ToolSpec:
    """Declarative definition from which unbound :class:`Tool` instances are made."""
    name: str
    description: str
    input_model: type[ToolInput]
    handler: Handler
    action: str

    def create(self) -> Tool:
        return Tool(self.name, self.description, self.input_model, self.handler, self.action)
