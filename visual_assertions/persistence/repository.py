"""Project repository — snapshot loading and all-or-nothing commits."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Callable, ContextManager, Iterator, Optional, Protocol

from visual_assertions.models.project import Project
from visual_assertions.screenshots.errors import VisualAssertionError

logger = logging.getLogger(__name__)

ProjectPredicate = Callable[[Project], bool]


class ConcurrentModificationError(VisualAssertionError):
    """A project changed in storage after the transaction loaded it."""


class FindProjectByName:
    """Predicate matching a project by its name."""

    def __init__(self, name: str):
        self.name = name

    def __call__(self, project: Project) -> bool:
        return project.name == self.name

    def __repr__(self) -> str:
        return f"FindProjectByName({self.name!r})"


class Transaction(Protocol):
    def find_one(self, predicate: ProjectPredicate) -> Optional[Project]: ...

    def find_project_by_name(self, name: str) -> Optional[Project]: ...

    def save(self, project: Project) -> None: ...

    def commit(self) -> None: ...


class ProjectRepository(Protocol):
    def transaction(self) -> ContextManager[Transaction]: ...

    def find_one(self, predicate: ProjectPredicate) -> Optional[Project]: ...

    def list_projects(self) -> list[Project]: ...


class _ProjectTransaction:
    """Unit of work over a repository.

    Loaded projects are deep copies. Saved projects are staged and only
    written by ``commit()``; nothing staged survives a transaction that is
    left without committing.
    """

    def __init__(self, repository: "InMemoryProjectRepository"):
        self._repository = repository
        self._loaded_versions: dict[str, Optional[int]] = {}
        self._staged: dict[str, Project] = {}
        self._loaded: dict[str, Project] = {}
        self.committed = False

    def find_one(self, predicate: ProjectPredicate) -> Optional[Project]:
        # Projects already seen by this transaction win over fresh copies
        for project in (*self._staged.values(), *self._loaded.values()):
            if predicate(project):
                return project
        for project in self._repository._read_all():
            if project.name in self._staged or project.name in self._loaded:
                continue
            if predicate(project):
                self._loaded[project.name] = project
                self._loaded_versions.setdefault(project.name, project.version)
                return project
        return None

    def find_project_by_name(self, name: str) -> Optional[Project]:
        project = self._staged.get(name) or self._loaded.get(name)
        if project is not None:
            return project
        project = self._repository._read_one(name)
        if project is not None:
            self._loaded[name] = project
            self._loaded_versions.setdefault(name, project.version)
        else:
            # Remember the absence so a concurrent creation is detected on commit
            self._loaded_versions.setdefault(name, None)
        return project

    def save(self, project: Project) -> None:
        self._loaded_versions.setdefault(project.name, None)
        self._staged[project.name] = project

    def commit(self) -> None:
        if self.committed:
            raise RuntimeError("Transaction already committed")
        if self._staged:
            self._repository._apply(self._staged, self._loaded_versions)
        self.committed = True


class InMemoryProjectRepository:
    """Process-local repository keeping committed projects in a dict."""

    def __init__(self):
        self._projects: dict[str, Project] = {}
        self._lock = threading.Lock()

    @contextmanager
    def transaction(self) -> Iterator[_ProjectTransaction]:
        tx = _ProjectTransaction(self)
        try:
            yield tx
        finally:
            if not tx.committed:
                logger.debug("Transaction left without commit, discarding staged changes")

    def find_one(self, predicate: ProjectPredicate) -> Optional[Project]:
        if isinstance(predicate, FindProjectByName):
            return self._read_one(predicate.name)
        return next((p for p in self._read_all() if predicate(p)), None)

    def list_projects(self) -> list[Project]:
        return self._read_all()

    # Storage primitives, overridden by file-backed repositories

    def _read_all(self) -> list[Project]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._projects.values()]

    def _read_one(self, name: str) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(name)
            return project.model_copy(deep=True) if project is not None else None

    def _read_version(self, name: str) -> Optional[int]:
        project = self._projects.get(name)
        return project.version if project is not None else None

    def _write(self, project: Project) -> None:
        self._projects[project.name] = project

    def _storage_lock(self) -> ContextManager[None]:
        """Lock shared with other writers of the same storage; none for memory."""
        return nullcontext()

    def _apply(self, staged: dict[str, Project], loaded_versions: dict[str, Optional[int]]) -> None:
        with self._lock, self._storage_lock():
            for name in staged:
                expected = loaded_versions.get(name)
                current = self._read_version(name)
                if current != expected:
                    raise ConcurrentModificationError(
                        f"Project '{name}' was modified concurrently "
                        f"(loaded version {expected}, stored version {current})"
                    )
            # Validate every staged graph before anything is written
            prepared = []
            for project in staged.values():
                snapshot = Project.model_validate(project.model_dump())
                snapshot.version = (loaded_versions.get(project.name) or 0) + 1
                prepared.append((project, snapshot))
            for project, snapshot in prepared:
                self._write(snapshot)
                project.version = snapshot.version
            logger.debug("Committed %d project(s)", len(prepared))
