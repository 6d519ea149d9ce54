import asyncio
import importlib.metadata
import typing as t
from datetime import datetime, timedelta
from pathlib import Path
from typing import Annotated

import httpx
import typer
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from brandscope import analysis
from brandscope.cli import views
from brandscope.cli.callbacks import load_file_callback, pipeline_callback, tab_callback
from brandscope.cli.completions import complete_pipeline, complete_tab
from brandscope.client import BrandscopeClient
from brandscope.exceptions import BrandscopeError
from brandscope.models import BatchExecution
from brandscope.results import BatchProcessResults
from brandscope.runner import BatchRunner
from brandscope.settings import load_settings
from brandscope.utils.files import read_json_file, write_json_file
from brandscope.utils.logging import setup_logging

T = t.TypeVar("T")

app = typer.Typer(no_args_is_help=True)


def _run(coro: t.Coroutine[t.Any, t.Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except BrandscopeError as error:
        print(f"[red]{escape(error.message)}[/red]")
        raise typer.Exit(1) from error
    except httpx.HTTPError as error:
        print(f"[red]Could not reach the backend: {escape(str(error))}[/red]")
        raise typer.Exit(1) from error
    except ValidationError as error:
        print(f"[red]Unexpected backend response: {escape(str(error))}[/red]")
        raise typer.Exit(1) from error


def _client(ctx: typer.Context) -> BrandscopeClient:
    return BrandscopeClient(
        settings=ctx.obj["settings"],
        client_factory=ctx.obj.get("client_factory"),
    )


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("-v", "--verbose", help="Show debug logs of backend calls")
    ] = False,
    api_url: Annotated[
        str | None,
        typer.Option(help="Backend base URL, defaults to BRANDSCOPE_API_URL"),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option(help="Bearer token, defaults to BRANDSCOPE_API_TOKEN"),
    ] = None,
):
    """Run brand perception batches and inspect their results"""
    setup_logging(verbose=verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings(api_url=api_url, api_token=token)
    except ValidationError as error:
        print(f"[red]Invalid settings: {escape(str(error))}[/red]")
        raise typer.Exit(1) from error


@app.command(name="run")
def run_batch(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="The project / identity card id")],
    pipeline: Annotated[
        str | None,
        typer.Option(
            "-p",
            "--pipeline",
            help="Run a single pipeline instead of the full batch",
            callback=pipeline_callback,
            autocompletion=complete_pipeline,
        ),
    ] = None,
    poll_interval: Annotated[
        float | None, typer.Option(min=0, help="Seconds between two status polls")
    ] = None,
    max_attempts: Annotated[
        int | None, typer.Option(min=1, help="Maximum number of status polls")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("-o", "--output", help="Write the parsed results to a JSON file")
    ] = None,
):
    """Start a batch for a project, wait for it and display its results"""
    runner = BatchRunner(
        _client(ctx), poll_interval_seconds=poll_interval, max_poll_attempts=max_attempts
    )
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        transient=True,
    ) as progress:
        task = progress.add_task(description="Starting batch analysis...", total=100)

        def on_poll(attempt: int, execution: BatchExecution) -> None:
            progress.update(
                task,
                completed=analysis.poll_progress(attempt, runner.max_poll_attempts),
                description=f"Waiting for results ({attempt}/{runner.max_poll_attempts}): "
                f"{execution.status.value}",
            )

        batch_run = _run(runner.run(project_id, pipeline=pipeline, on_poll=on_poll))
    console = Console()
    if batch_run.already_running:
        console.print("[yellow]A batch was already running for this project[/yellow]")
    views.print_execution(console, batch_run.execution)
    views.print_results(console, batch_run.results)
    if output is not None:
        write_json_file(output, batch_run.results.model_dump_json(by_alias=True, indent=2))
        print(f"Results written to [green]{output.as_posix()}[/green]")


@app.command(name="status")
def get_status(
    ctx: typer.Context,
    batch_execution_id: Annotated[str, typer.Argument(help="The batch execution id")],
):
    """Get the status of a batch execution"""
    execution = _run(_client(ctx).get_batch_execution(batch_execution_id))
    views.print_execution(Console(), execution)


@app.command(name="results")
def get_results(
    ctx: typer.Context,
    batch_execution_id: Annotated[str, typer.Argument(help="The batch execution id")],
    tab: Annotated[
        str | None,
        typer.Option(
            "-t",
            "--tab",
            help="Only display one pipeline: visibility, sentiment, competition or alignment",
            callback=tab_callback,
            autocompletion=complete_tab,
        ),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("-o", "--output", help="Write the parsed results to a JSON file")
    ] = None,
):
    """Display the parsed results of a batch execution"""
    runner = BatchRunner(_client(ctx))
    batch_run = _run(
        runner.fetch_results(batch_execution_id, required=[tab] if tab is not None else ())
    )
    views.print_results(Console(), batch_run.results, tab=tab)
    if output is not None:
        write_json_file(output, batch_run.results.model_dump_json(by_alias=True, indent=2))
        print(f"Results written to [green]{output.as_posix()}[/green]")


@app.command(name="show")
def show_results(
    path: Annotated[
        Path,
        typer.Argument(
            help="A results file written by `run` or `results`", callback=load_file_callback
        ),
    ],
    tab: Annotated[
        str | None,
        typer.Option(
            "-t",
            "--tab",
            help="Only display one pipeline",
            callback=tab_callback,
            autocompletion=complete_tab,
        ),
    ] = None,
):
    """Display results saved to a local JSON file"""
    results = BatchProcessResults.model_validate(read_json_file(path))
    views.print_results(Console(), results, tab=tab)


@app.command(name="list")
def list_executions(
    ctx: typer.Context,
    project_id: Annotated[
        str | None, typer.Option("--project", help="Only list executions of this project")
    ] = None,
):
    """List batch executions"""
    executions = _run(_client(ctx).list_batch_executions(company_id=project_id))
    views.print_executions(Console(), executions)


@app.command(name="prompts")
def get_prompts(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="The project / identity card id")],
    wait: Annotated[
        bool, typer.Option(help="Wait for the prompt set of a freshly created project")
    ] = False,
):
    """Display the prompt set of a project"""
    client = _client(ctx)
    prompt_set = _run(
        client.wait_for_prompt_set(project_id) if wait else client.get_prompt_set(project_id)
    )
    if prompt_set is None:
        typer.echo(f"No prompt set found for project: {project_id}")
        raise typer.Exit(1)
    views.print_prompt_set(Console(), prompt_set)


@app.command(name="stats")
def get_statistics(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(min=1, help="Number of days to cover")] = 7,
):
    """Display batch execution counts per day and trigger"""
    end_date = datetime.now()
    start_date = end_date - timedelta(days=days)
    statistics = _run(_client(ctx).get_batch_statistics(start_date, end_date))
    views.print_statistics(Console(), statistics)


@app.command(name="reports")
def list_reports(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="The project / identity card id")],
):
    """List the weekly reports of a project"""
    report_list = _run(_client(ctx).list_reports(project_id))
    views.print_reports(Console(), report_list)


@app.command()
def version():
    """Get the version of the package"""
    typer.echo(importlib.metadata.version("brandscope"))
    raise typer.Exit()
