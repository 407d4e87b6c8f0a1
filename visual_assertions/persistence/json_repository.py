"""JSON-file repository — one file per project under a storage directory."""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from visual_assertions.models.project import Project

from .repository import InMemoryProjectRepository

logger = logging.getLogger(__name__)


class JsonProjectRepository(InMemoryProjectRepository):
    """Stores each project graph, images included, as a JSON document.

    Commits replace a project file atomically (temporary file + rename), so
    readers see either the previous or the new graph. Writers sharing the
    storage directory, in this process or another, serialize on an flock of
    ``projects/.lock`` held across the version check and the write.
    """

    def __init__(self, storage_dir: Path):
        super().__init__()
        self.storage_dir = Path(storage_dir)
        self.projects_dir = self.storage_dir / "projects"

    def _project_path(self, name: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", name).strip("._") or "project"
        digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:8]
        return self.projects_dir / f"{safe}-{digest}.json"

    def _read_all(self) -> list[Project]:
        if not self.projects_dir.exists():
            return []
        projects = []
        for path in sorted(self.projects_dir.glob("*.json")):
            if path.name.startswith("."):
                continue
            with open(path, encoding="utf-8") as f:
                projects.append(Project.model_validate_json(f.read()))
        return projects

    def _read_one(self, name: str) -> Optional[Project]:
        path = self._project_path(name)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return Project.model_validate_json(f.read())

    def _read_version(self, name: str) -> Optional[int]:
        path = self._project_path(name)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f).get("version", 0)

    def _write(self, project: Project) -> None:
        path = self._project_path(project.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(project.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved project '%s' (version %d) to %s", project.name, project.version, path)

    @contextmanager
    def _storage_lock(self) -> Iterator[None]:
        self.projects_dir.mkdir(parents=True, exist_ok=True)
        with open(self.projects_dir / ".lock", "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
