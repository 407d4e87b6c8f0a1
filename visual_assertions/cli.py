"""CLI entry point for visual assertions."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from visual_assertions.adapters import get_test_runner_adapter
from visual_assertions.camera import BrowserCamera, ImageFileCamera, PlaywrightBrowserCamera
from visual_assertions.models.config import VisualAssertionsConfig
from visual_assertions.models.identity import RunContext
from visual_assertions.models.image import BlindRegion
from visual_assertions.persistence import FindProjectByName, JsonProjectRepository
from visual_assertions.reporter.json_report import generate_json_report
from visual_assertions.screenshots.outcome import CheckOutcome
from visual_assertions.screenshots.service import VisualAssertionsService

console = Console()

PLAYWRIGHT_BROWSERS = ("chromium", "firefox", "webkit")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> VisualAssertionsConfig:
    try:
        return VisualAssertionsConfig.load(path)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {path}[/red]")
        console.print("Run 'visual-assertions init' to create a default config.")
        sys.exit(1)


def _repository(cfg: VisualAssertionsConfig) -> JsonProjectRepository:
    return JsonProjectRepository(Path(cfg.storage_dir))


def _iso_datetime(ctx: click.Context, param: click.Parameter, value: str | None) -> datetime | None:
    """Parse an ISO date; dates without a timezone are taken as UTC."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not an ISO date, e.g. 2025-01-01T12:00:00+00:00") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _run_check(
    cfg: VisualAssertionsConfig, camera: BrowserCamera, name: str, run_start: datetime | None = None,
) -> CheckOutcome:
    run_context = RunContext(start_date=run_start) if run_start else RunContext.start_now()
    service = VisualAssertionsService(
        project_repository=_repository(cfg),
        test_runner_adapter=get_test_runner_adapter(cfg.test_runner),
        run_context=run_context,
        project_name=cfg.project_name,
        browser_name=cfg.browser_name,
        screenshot_category=cfg.screenshot_category,
    )
    return service.check_view_with_pattern(camera, name)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression checks against stored screenshot patterns"""
    setup_logging(verbose)


@cli.command()
@click.option("--project", "-p", prompt="Project name", help="Project the checks belong to")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def init(project: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return
    cfg = VisualAssertionsConfig(project_name=project)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


@cli.command()
@click.argument("url")
@click.argument("name")
@click.option("--run-start", default=None, callback=_iso_datetime, help="ISO start of the run; checks sharing it share a session")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def check(url: str, name: str, run_start: datetime | None, config: str) -> None:
    """Open URL in a browser and check it against the pattern NAME."""
    from playwright.sync_api import sync_playwright

    cfg = _load_config(config)
    if cfg.browser_name not in PLAYWRIGHT_BROWSERS:
        console.print(f"[red]Unsupported browser '{cfg.browser_name}'[/red] (use one of {', '.join(PLAYWRIGHT_BROWSERS)})")
        sys.exit(1)

    with sync_playwright() as p:
        browser = getattr(p, cfg.browser_name).launch(headless=cfg.headless)
        try:
            page = browser.new_page(viewport={"width": cfg.viewport.width, "height": cfg.viewport.height})
            page.goto(url)
            outcome = _run_check(cfg, PlaywrightBrowserCamera(page, full_page=cfg.full_page), name, run_start)
        finally:
            browser.close()

    if not outcome.is_success:
        sys.exit(1)


@cli.command("check-file")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.option("--run-start", default=None, callback=_iso_datetime, help="ISO start of the run; checks sharing it share a session")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def check_file(image: Path, name: str, run_start: datetime | None, config: str) -> None:
    """Check an existing PNG screenshot against the pattern NAME."""
    cfg = _load_config(config)
    outcome = _run_check(cfg, ImageFileCamera(image), name, run_start)
    if not outcome.is_success:
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def sessions(config: str) -> None:
    """List test sessions of the configured project."""
    cfg = _load_config(config)
    project = _repository(cfg).find_one(FindProjectByName(cfg.project_name))
    if project is None or not project.sessions:
        console.print("[yellow]No sessions recorded[/yellow]")
        return

    table = Table(title=f"Sessions of {project.name}")
    table.add_column("Started", style="bold")
    table.add_column("Total")
    table.add_column("Passed")
    table.add_column("Failed")
    for session in sorted(project.sessions, key=lambda s: s.start_date):
        table.add_row(
            session.start_date.isoformat(),
            str(len(session.test_results)),
            f"[green]{session.passed}[/green]",
            f"[red]{session.failed}[/red]",
        )
    console.print(table)


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def patterns(config: str) -> None:
    """List active patterns of the configured project."""
    cfg = _load_config(config)
    project = _repository(cfg).find_one(FindProjectByName(cfg.project_name))
    rows = list(project.iter_active_patterns()) if project else []
    if not rows:
        console.print("[yellow]No patterns stored[/yellow]")
        return

    table = Table(title=f"Patterns of {project.name}")
    table.add_column("Category", style="bold")
    table.add_column("Screenshot")
    table.add_column("Browser")
    table.add_column("Blind regions")
    table.add_column("Created")
    for category, test_case, pattern in rows:
        table.add_row(
            category.name,
            test_case.pattern_screenshot_name,
            pattern.browser_name,
            str(len(pattern.blind_regions)),
            pattern.created_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@cli.command()
@click.option("--start-date", default=None, callback=_iso_datetime, help="ISO start date of the session (default: latest)")
@click.option("--output", "-o", default=None, help="Report file path")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def report(start_date: datetime | None, output: str | None, config: str) -> None:
    """Write a JSON report for one session."""
    cfg = _load_config(config)
    project = _repository(cfg).find_one(FindProjectByName(cfg.project_name))
    if project is None or not project.sessions:
        console.print("[yellow]No sessions recorded[/yellow]")
        sys.exit(1)

    if start_date:
        session = project.get_session(start_date)
        if session is None:
            console.print(f"[red]No session started at {start_date.isoformat()}[/red]")
            sys.exit(1)
    else:
        session = max(project.sessions, key=lambda s: s.start_date)

    output_path = Path(output) if output else Path(cfg.report_output_dir) / f"report_{session.id}.json"
    generate_json_report(project, session, output_path)
    console.print(f"  JSON report: [blue]{output_path}[/blue]")


@cli.group("blind-region")
def blind_region() -> None:
    """Manage blind regions of stored patterns."""
    pass


@blind_region.command("add")
@click.argument("category")
@click.argument("name")
@click.argument("left", type=int)
@click.argument("top", type=int)
@click.argument("width", type=int)
@click.argument("height", type=int)
@click.option("--browser", "-b", default=None, help="Browser of the pattern (default: configured browser)")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def blind_region_add(
    category: str, name: str, left: int, top: int, width: int, height: int,
    browser: str | None, config: str,
) -> None:
    """Exclude a rectangle of the pattern CATEGORY/NAME from comparison."""
    cfg = _load_config(config)
    browser_name = browser or cfg.browser_name
    region = BlindRegion(left=left, top=top, width=width, height=height)

    with _repository(cfg).transaction() as tx:
        project = tx.find_project_by_name(cfg.project_name)
        test_case_category = project.get_test_case_category(category) if project else None
        test_case = test_case_category.get_test_case(name) if test_case_category else None
        pattern = test_case.get_active_pattern_for_browser(browser_name) if test_case else None
        if pattern is None:
            console.print(f"[red]No active pattern for {category}/{name} ({browser_name})[/red]")
            sys.exit(1)
        pattern.add_blind_region(region)
        tx.save(project)
        tx.commit()
    console.print(f"[green]Added blind region {region.box} to {category}/{name} ({browser_name})[/green]")


if __name__ == "__main__":
    cli()
