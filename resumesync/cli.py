"""CLI interface for resumesync."""

import logging
from typing import Any, Optional

import click

from .config import config
from .exceptions import (
    EXIT_DISPATCH_FAILED,
    EXIT_INTERRUPTED,
    EXIT_OK,
    ResumeSyncError,
    SourceInspectionError,
)
from .options import InvocationOptions, RunMode, parse_invocation, select_mode
from .output import OutputFormatter
from .sync.engine import CancellationToken, SyncEngine, SyncStats
from .sync.probes import ProbeStatus
from .tool import LocalFilesystem, TransferTool

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("resumesync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _inspect_source(
    mode: RunMode,
    options: InvocationOptions,
    tool: TransferTool,
    filesystem: LocalFilesystem,
) -> bool:
    """Classify the top-level source.

    Returns:
        True for a directory, False for a single file

    Raises:
        SourceInspectionError: If the source is neither
    """
    source = options.source
    assert source is not None

    if mode == RunMode.DOWNLOAD_DIRECTORY_RESUME:
        description = tool.describe_remote(source, source.path)
        if description.status != ProbeStatus.EXISTS or description.entry is None:
            detail = description.message or description.status.value
            raise SourceInspectionError(
                f"Cannot inspect remote source {source.endpoint}: {detail}"
            )
        return description.entry.is_dir

    if filesystem.is_dir(source.path):
        return True
    if filesystem.is_file(source.path):
        return False
    raise SourceInspectionError(
        f"Source {source.path} is neither a file nor a directory"
    )


def _run_resume(
    mode: RunMode,
    options: InvocationOptions,
    engine: SyncEngine,
    dry_run: bool,
    jobs: int,
    cancel: CancellationToken,
) -> SyncStats:
    assert options.source is not None and options.destination is not None
    is_dir = _inspect_source(mode, options, engine.tool, engine.filesystem)
    if not is_dir:
        return engine.transfer_single_file(
            options.source,
            options.destination,
            extra_options=options.passthrough_options,
            dry_run=dry_run,
        )

    run = engine.download if mode == RunMode.DOWNLOAD_DIRECTORY_RESUME else engine.upload
    return run(
        options.source,
        options.destination,
        extra_options=options.passthrough_options,
        dry_run=dry_run,
        max_workers=jobs,
        cancel=cancel,
    )


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "help_option_names": ["--help"],
    }
)
@click.option(
    "--tool",
    "tool_path",
    envvar="RESUMESYNC_TOOL",
    help="Transfer tool executable (default: from config)",
)
@click.option(
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Number of parallel file transfers",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without transferring"
)
@click.option("--quiet", is_flag=True, help="Suppress non-essential output")
@click.option("--json", "json_output", is_flag=True, help="Print the summary as JSON")
@click.option("--debug", is_flag=True, help="Enable debug logging output")
@click.version_option(package_name="resumesync")
@click.argument("tool_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(
    ctx: Any,
    tool_path: Optional[str],
    jobs: Optional[int],
    dry_run: bool,
    quiet: bool,
    json_output: bool,
    debug: bool,
    tool_args: tuple[str, ...],
) -> None:
    """Resume interrupted directory transfers.

    Usage: resumesync [OPTIONS] [TOOL OPTIONS...] SOURCE DESTINATION

    When the tool options ask for both a recursive (-r) and a resuming
    (--resume) transfer between a local path and a SERVER:PATH endpoint, the
    source tree is walked entry by entry: complete files are skipped,
    missing directories are created and partial or missing files are
    transferred in resume mode. Any other invocation is passed to the
    transfer tool unchanged.
    """
    _configure_logging(debug)
    out = OutputFormatter(json_output=json_output, quiet=quiet)

    profile = config.tool_profile()
    tool = TransferTool(tool_path or config.tool_path, profile)

    try:
        tool.check_executable()
    except ResumeSyncError as e:
        out.error(str(e))
        ctx.exit(e.exit_code)

    options = parse_invocation(tool_args, resume_args=profile.resume_args)
    mode = select_mode(options)
    logger.debug("Run mode: %s", mode.value)

    if mode == RunMode.PASS_THROUGH:
        if dry_run:
            out.info(f"Would run: {tool.tool_path} {' '.join(tool_args)}")
            ctx.exit(EXIT_OK)
        ctx.exit(tool.passthrough(tool_args))

    engine = SyncEngine(tool, LocalFilesystem(), out)
    cancel = CancellationToken()

    try:
        with cancel.handle_signals():
            stats = _run_resume(
                mode, options, engine, dry_run, jobs or config.jobs, cancel
            )
    except ResumeSyncError as e:
        out.error(f"Error: {e}")
        ctx.exit(e.exit_code)
    except KeyboardInterrupt:
        out.warning("\nCancelled by user")
        ctx.exit(EXIT_INTERRUPTED)

    if json_output:
        out.output_json(stats.to_dict())

    if stats.interrupted:
        ctx.exit(EXIT_INTERRUPTED)
    if stats.failed:
        ctx.exit(EXIT_DISPATCH_FAILED)
    ctx.exit(EXIT_OK)


if __name__ == "__main__":
    main()
