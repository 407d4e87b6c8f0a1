"""Project repositories with explicit transactions."""

from .json_repository import JsonProjectRepository
from .repository import (
    ConcurrentModificationError,
    FindProjectByName,
    InMemoryProjectRepository,
    ProjectRepository,
    Transaction,
)

__all__ = [
    "ConcurrentModificationError",
    "FindProjectByName",
    "InMemoryProjectRepository",
    "JsonProjectRepository",
    "ProjectRepository",
    "Transaction",
]
