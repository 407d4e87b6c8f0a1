"""Tests for JSON report generation."""

import json

from visual_assertions.models.image import BlindRegion
from visual_assertions.models.project import Project
from visual_assertions.models.session import TestResult, TestSession
from visual_assertions.reporter.json_report import build_session_report, generate_json_report


def _project_with_session(start_date, png):
    project = Project(name="shop")
    session = TestSession(start_date=start_date)
    session.add_test_result(TestResult(
        pattern_id="p1", screenshot_name="header", category="home", browser_name="chromium", test_passed=True,
    ))
    session.add_test_result(TestResult(
        pattern_id="p1", screenshot_name="footer", category="home", browser_name="chromium", test_passed=False,
        error_screenshot=png(), blind_regions_snapshot=[BlindRegion(left=0, top=0, width=1, height=1)],
    ))
    project.add_session(session)
    return project, session


class TestJsonReport:
    def test_summary_counts(self, start_date, png):
        project, session = _project_with_session(start_date, png)
        report = build_session_report(project, session)
        assert report["project"] == "shop"
        assert (report["total"], report["passed"], report["failed"]) == (2, 1, 1)
        assert report["start_date"] == start_date.isoformat()

    def test_images_are_left_out(self, start_date, png):
        project, session = _project_with_session(start_date, png)
        failed = build_session_report(project, session)["results"][1]
        assert "error_screenshot" not in failed
        assert failed["blind_regions_snapshot"] == [{"left": 0, "top": 0, "width": 1, "height": 1}]

    def test_writes_file(self, tmp_path, start_date, png):
        project, session = _project_with_session(start_date, png)
        output = tmp_path / "reports" / "report.json"
        generate_json_report(project, session, output)
        assert json.loads(output.read_text())["results"][0]["screenshot_name"] == "header"
