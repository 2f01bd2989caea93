"""Asana task-tracking tools."""

from .client import AsanaClient, AsanaError, AsanaUser, Project, Task, Workspace
from .tools import TOOL_MODELS, AsanaTools

__all__ = [
    "AsanaClient",
    "AsanaError",
    "AsanaTools",
    "AsanaUser",
    "Project",
    "Task",
    "TOOL_MODELS",
    "Workspace",
]
