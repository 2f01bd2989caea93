"""
Async client for the Asana REST API (read-only subset).

Lists are returned as pydantic models; malformed entries are skipped.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ASANA_BASE_URL = "https://app.asana.com/api/1.0"

T = TypeVar("T", bound=BaseModel)


class AsanaError(Exception):
    """An Asana API call failed."""


class Workspace(BaseModel):
    gid: str
    name: str = ""


class Project(BaseModel):
    gid: str
    name: str = ""


class Task(BaseModel):
    gid: str
    name: str = ""
    completed: bool = False
    notes: str = ""


class AsanaUser(BaseModel):
    gid: str
    name: str = ""


class AsanaClient:
    """
    Example:
        asana = AsanaClient(api_key)
        projects = await asana.list_projects()  # default workspace
        tasks = await asana.list_project_tasks(projects[0].gid)
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._http = http_client or httpx.AsyncClient(
            base_url=ASANA_BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_list(
        self, path: str, model: type[T], params: dict[str, str] | None = None
    ) -> list[T]:
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as e:
            raise AsanaError(f"Request to {path} failed: {e}") from e

        if response.status_code != 200:
            raise AsanaError(
                f"API request failed with status {response.status_code}: {response.text}"
            )

        try:
            data: list[Any] = response.json().get("data") or []
        except ValueError as e:
            raise AsanaError(f"Failed to parse response: {e}") from e

        items = []
        for raw in data:
            try:
                items.append(model.model_validate(raw))
            except ValidationError:
                logger.debug(f"Skipping malformed {model.__name__} entry from {path}")
        return items

    async def get_workspaces(self) -> list[Workspace]:
        return await self._get_list("/workspaces", Workspace)

    async def default_workspace(self) -> str:
        """
        GID of the only workspace the key can see.

        Raises:
            AsanaError: If there are no workspaces or more than one
        """
        workspaces = await self.get_workspaces()
        if not workspaces:
            raise AsanaError("no workspaces found")
        if len(workspaces) > 1:
            raise AsanaError(
                f"multiple workspaces found ({len(workspaces)}), "
                "workspace_gid must be specified"
            )
        return workspaces[0].gid

    async def list_projects(self, workspace_gid: str | None = None) -> list[Project]:
        workspace_gid = workspace_gid or await self.default_workspace()
        return await self._get_list(f"/workspaces/{workspace_gid}/projects", Project)

    async def list_project_tasks(self, project_gid: str) -> list[Task]:
        """Incomplete tasks in a project."""
        return await self._get_list(
            f"/projects/{project_gid}/tasks",
            Task,
            params={"completed_since": "now"},
        )

    async def list_user_tasks(
        self, assignee_gid: str, workspace_gid: str | None = None
    ) -> list[Task]:
        """Incomplete tasks assigned to a user."""
        workspace_gid = workspace_gid or await self.default_workspace()
        return await self._get_list(
            "/tasks",
            Task,
            params={
                "assignee": assignee_gid,
                "workspace": workspace_gid,
                "completed_since": "now",
            },
        )

    async def list_users(self, workspace_gid: str | None = None) -> list[AsanaUser]:
        workspace_gid = workspace_gid or await self.default_workspace()
        return await self._get_list(
            "/users", AsanaUser, params={"workspace": workspace_gid}
        )
