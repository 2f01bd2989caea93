"""
AsanaTools - Asana lookups exposed to the model as tools.

Pydantic input models are the single source of truth for the schemas
sent to Anthropic and for argument validation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from pydantic import BaseModel, Field

from .client import AsanaClient

if TYPE_CHECKING:
    from anthropic.types import ToolParam

logger = logging.getLogger(__name__)


# --- Tool input models ---


class ListProjectsInput(BaseModel):
    """List projects in an Asana workspace."""

    workspace_gid: str | None = Field(
        None,
        description=(
            "The workspace GID to list projects from "
            "(optional - will use default workspace if only one exists)"
        ),
    )


class ListProjectTasksInput(BaseModel):
    """List incomplete tasks in an Asana project."""

    project_gid: str = Field(..., description="The project GID to list tasks from")


class ListUserTasksInput(BaseModel):
    """List incomplete tasks assigned to a user in Asana."""

    assignee_gid: str = Field(
        ..., description="The user GID to get assigned tasks for"
    )
    workspace_gid: str | None = Field(
        None,
        description=(
            "The workspace GID to search within "
            "(optional - will use default workspace if only one exists)"
        ),
    )


class ListUsersInput(BaseModel):
    """List users in an Asana workspace to get their GIDs for other operations."""

    workspace_gid: str | None = Field(
        None,
        description=(
            "The workspace GID to list users from "
            "(optional - will use default workspace if only one exists)"
        ),
    )


# Registry mapping tool names to their input models
TOOL_MODELS: dict[str, type[BaseModel]] = {
    "list_asana_projects": ListProjectsInput,
    "list_asana_project_tasks": ListProjectTasksInput,
    "list_asana_user_tasks": ListUserTasksInput,
    "list_asana_users": ListUsersInput,
}


class AsanaTools:
    """
    ToolCollaborator over an AsanaClient.

    Example:
        tools = AsanaTools(AsanaClient(api_key))
        llm = AnthropicProvider(tools=tools)
    """

    def __init__(self, client: AsanaClient):
        self.client = client

    def get_anthropic_tool_schemas(self) -> list["ToolParam"]:
        """Get tool schemas in Anthropic format."""
        tools: list[dict[str, Any]] = []
        for name, model in TOOL_MODELS.items():
            schema = model.model_json_schema()
            schema.pop("title", None)
            tools.append(
                {
                    "name": name,
                    "description": model.__doc__ or "",
                    "input_schema": schema,
                }
            )
        return cast(list["ToolParam"], tools)

    async def execute_tool_call(self, tool_name: str, arguments: dict[str, Any]) -> Any:
        """
        Execute a tool call by name with validated arguments.

        Errors are returned as strings so the model can see them and retry.

        Returns:
            List of plain dicts, or an error string
        """
        model = TOOL_MODELS.get(tool_name)
        if model is None:
            return f"Unknown tool: {tool_name}"

        try:
            args = model.model_validate(arguments)
        except Exception as e:
            return f"Invalid input: {e}"

        try:
            match args:
                case ListProjectsInput():
                    items = await self.client.list_projects(args.workspace_gid)
                case ListProjectTasksInput():
                    items = await self.client.list_project_tasks(args.project_gid)
                case ListUserTasksInput():
                    items = await self.client.list_user_tasks(
                        args.assignee_gid, args.workspace_gid
                    )
                case ListUsersInput():
                    items = await self.client.list_users(args.workspace_gid)
                case _:
                    return f"Unknown tool: {tool_name}"
        except Exception as e:
            logger.error(f"Asana tool {tool_name} failed: {e}")
            return f"Error executing {tool_name}: {e}"

        return [item.model_dump() for item in items]
