"""Command-line entry point for the Digital Collections export.

    dcexport --token <TOKEN> --output captures.ndjson

Without --output the JSON Lines stream goes to stdout; logs go to stderr and
to logs/runs/<run_id>/cli.log.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer  # type: ignore

from dcexport.catalog.collections import load_collections
from dcexport.config import TOKEN_ENV_VAR, load_settings
from dcexport.exceptions import ConfigurationError, ExportError
from dcexport.pipeline.runner import run_export
from dcexport.utils.logger import LoggerManager
from dcexport.utils.task_paths import TaskPaths

app = typer.Typer(add_completion=False)


@app.command()
def export(
    token: Optional[str] = typer.Option(
        None,
        "--token",
        "-t",
        envvar=TOKEN_ENV_VAR,
        help="Digital Collections API token.",
        show_envvar=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="File to write JSON Lines to (default: stdout).",
    ),
):
    """
    Exports representative captures of the included collections as JSON Lines,
    enriched with location and date from their MODS metadata.
    """
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    cli_logger = LoggerManager.get_logger(
        name="cli",
        task_paths=TaskPaths(),
        run_id=run_id,
        use_json=True,
    )

    try:
        settings = load_settings()
        LoggerManager.set_level(settings.log_level)
        if not token:
            raise ConfigurationError.from_missing_token()

        collections = load_collections(settings.collections_path)
        summary = asyncio.run(run_export(collections, token, settings, output=output))
    except ExportError as e:
        cli_logger.error(
            f"Export failed: {e}",
            extra={"extra_data": {"run_id": run_id, "error_type": type(e).__name__}},
        )
        raise typer.Exit(code=1)

    cli_logger.info(
        f"Export complete: {summary.rows_written} rows written",
        extra={"extra_data": {"run_id": run_id, **summary.model_dump()}},
    )


def main():
    app()


if __name__ == "__main__":
    main()
