from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.formatting import format_comment
from linear_bridge.services.relations import resolve
from linear_bridge.services.schemas import validate


class AddCommentInput(ToolInput):
    issue_id: str = Field(description="The ID of the issue to comment on")
    body: str = Field(min_length=1, description="The comment text (markdown)")


async def add_comment(ctx: ToolContext, args: AddCommentInput) -> str:
    linear = ctx.client()
    created = await linear.create_comment(args.issue_id, args.body)
    await resolve(created, ["user"], log=ctx.logger)
    comment = validate("comment", created)
    ctx.logger.info(f"Added comment {comment.id} to issue {args.issue_id}")
    return format_comment(comment, args.issue_id)


ADD_COMMENT = ToolSpec(
    name="add_comment",
    description="Add a comment to a Linear issue.",
    input_model=AddCommentInput,
    handler=add_comment,
    action="adding comment",
)
