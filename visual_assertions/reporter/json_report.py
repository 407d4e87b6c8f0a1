"""JSON report output."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from visual_assertions.models.project import Project
from visual_assertions.models.session import TestSession

logger = logging.getLogger(__name__)


def build_session_report(project: Project, session: TestSession) -> dict:
    """Summarize a session; images are left out."""
    return {
        "project": project.name,
        "session_id": session.id,
        "start_date": session.start_date.isoformat(),
        "total": len(session.test_results),
        "passed": session.passed,
        "failed": session.failed,
        "results": [
            {
                "category": r.category,
                "screenshot_name": r.screenshot_name,
                "browser_name": r.browser_name,
                "test_passed": r.test_passed,
                "pattern_id": r.pattern_id,
                "checked_at": r.checked_at.isoformat(),
                "blind_regions_snapshot": [b.model_dump() for b in r.blind_regions_snapshot],
            }
            for r in session.test_results
        ],
    }


def generate_json_report(project: Project, session: TestSession, output_path: Path) -> None:
    """Write a machine-readable JSON report for one session."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(build_session_report(project, session), f, indent=2, default=str)
    logger.info("JSON report: %s", output_path)
