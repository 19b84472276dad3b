"""Command-line interface for bucket-sync."""

from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bucket_sync import __version__
from bucket_sync.config import UploaderConfig
from bucket_sync.config_manager import get_config_path, load_config, save_config
from bucket_sync.sync_engine import BucketUploader, RunState, UploadReport

app = typer.Typer(
    name="bucket-sync",
    help="Upload a local directory to an object store bucket, skipping unchanged files.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage the bucket-sync config file.")
app.add_typer(config_app, name="config")

console = Console()


# Message templates for consistent formatting
class Messages:
    CONFIG_LOAD_ERROR = "Error loading configuration: {error}"
    CONFIG_SAVED = "Configuration saved to {path}"
    CONFIG_MISSING = "No configuration file found at {path}"
    BUCKET_NOT_CONFIGURED = "Error: bucket not configured. Pass --bucket, set BUCKET_SYNC_BUCKET or run 'bucket-sync config init'"
    UPLOAD_ERROR = "Upload failed: {error}"
    UPLOAD_COMPLETED = "Upload completed successfully"
    DRY_RUN_COMPLETED = "Dry run completed"


def error_msg(message: str) -> str:
    """Format error message with consistent styling."""
    return f"[red]{message}[/red]"


def success_msg(message: str) -> str:
    """Format success message with consistent styling."""
    return f"[green]{message}[/green]"


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"bucket-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Upload a local directory to an object store bucket."""


def _load_and_configure(**overrides) -> UploaderConfig:
    """Load configuration (file, then environment) and apply command-line overrides."""
    try:
        file_config = UploaderConfig.from_dict(load_config(get_config_path()))
        config = file_config.with_env()
        return config.with_overrides(**overrides)
    except (yaml.YAMLError, OSError, TypeError) as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)


def _validate_configuration(config: UploaderConfig) -> None:
    """Validate required configuration settings."""
    if not config.bucket:
        console.print(error_msg(Messages.BUCKET_NOT_CONFIGURED))
        raise typer.Exit(1)


def _resolve_local_path(origin: str) -> Path:
    return Path(origin).expanduser().resolve()


def _initialize_uploader(config: UploaderConfig) -> BucketUploader:
    return BucketUploader(config, console=console)


def _display_results(report: UploadReport, dry_run: bool) -> None:
    """Display a summary of the run."""
    table = Table(border_style="bright_black")
    table.add_column("Result", style="bright_black")
    table.add_column("Files", justify="right")

    if dry_run:
        table.add_row("Would upload", str(len(report.pending)))
    else:
        table.add_row("Uploaded", str(len(report.uploaded)))
    table.add_row("Up to date", str(len(report.skipped)))
    table.add_row("Total", str(report.total))

    console.print(table)
    status = Messages.DRY_RUN_COMPLETED if dry_run else Messages.UPLOAD_COMPLETED
    console.print(success_msg(status))


@app.command()
def upload(
    origin: str = typer.Argument(..., help="Local directory to upload"),
    destination: str = typer.Argument("", help="Key prefix in the bucket (default: bucket root)"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Target bucket"),
    public: Optional[bool] = typer.Option(None, "--public/--private", help="Object visibility"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Show per-file progress"),
    allow: Optional[List[str]] = typer.Option(None, "--allow", "-a", help="Only upload paths matching this glob (repeatable)"),
    disallow: Optional[List[str]] = typer.Option(None, "--disallow", "-x", help="Never upload paths matching this glob (repeatable)"),
    profile: Optional[str] = typer.Option(None, help="AWS profile"),
    region: Optional[str] = typer.Option(None, help="Bucket region"),
    endpoint_url: Optional[str] = typer.Option(None, help="S3-compatible endpoint URL"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be uploaded without uploading"),
) -> None:
    """Upload files under ORIGIN to DESTINATION in the bucket."""
    config = _load_and_configure(
        bucket=bucket,
        public=public,
        debug=debug or None,
        allow=allow or None,
        disallow=disallow or None,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
    )
    _validate_configuration(config)

    local_path = _resolve_local_path(origin)
    report = UploadReport()
    try:
        uploader = _initialize_uploader(config)
        uploader.upload(local_path, destination, report=report, dry_run=dry_run)
    except Exception as e:
        console.print(error_msg(Messages.UPLOAD_ERROR.format(error=escape(str(e)))))
        if report.state is RunState.FAILED and report.total:
            console.print(f"{len(report.uploaded)} of {report.total} file(s) uploaded before the failure")
        if config.debug:
            console.print_exception()
        raise typer.Exit(1)

    _display_results(report, dry_run)


@config_app.command("show")
def config_show() -> None:
    """Show the saved configuration."""
    config_path = get_config_path()
    try:
        data = load_config(config_path)
    except yaml.YAMLError as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)

    if not data:
        console.print(Messages.CONFIG_MISSING.format(path=config_path))
        return

    console.print(f"[bold]{config_path}[/bold]")
    console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), markup=False)


@config_app.command("init")
def config_init(
    bucket: Optional[str] = typer.Option(None, help="Default bucket"),
    profile: Optional[str] = typer.Option(None, help="AWS profile"),
    region: Optional[str] = typer.Option(None, help="Bucket region"),
    public: Optional[bool] = typer.Option(None, "--public/--private", help="Default object visibility"),
) -> None:
    """Create or update the config file. Existing values are kept unless overridden."""
    config_path = get_config_path()
    try:
        data = load_config(config_path) or {}
    except yaml.YAMLError as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)

    if bucket is not None:
        data["bucket"] = bucket
    if public is not None:
        data["public"] = public
    aws = dict(data.get("aws") or {})
    if profile is not None:
        aws["profile"] = profile
    if region is not None:
        aws["region"] = region
    if aws:
        data["aws"] = aws

    save_config(config_path, data)
    console.print(success_msg(Messages.CONFIG_SAVED.format(path=config_path)))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
