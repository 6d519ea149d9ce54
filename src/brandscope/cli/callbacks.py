from pathlib import Path

import typer

from brandscope.cli.enums import PipelineName, Tab
from brandscope.status import ResultType


def pipeline_callback(ctx: typer.Context, value: str | None):
    if ctx.resilient_parsing or value is None:
        return value
    if value.lower() not in PipelineName.__members__.values():
        raise typer.BadParameter(
            message=f"'{value}' is not a valid pipeline, supported pipelines are: {', '.join(PipelineName.__members__.values())}",
            param_hint="--pipeline, -p",
        )
    return ResultType.parse(value).value


def tab_callback(ctx: typer.Context, value: str | None):
    if ctx.resilient_parsing or value is None:
        return value
    try:
        pipeline = ResultType.parse(value)
    except ValueError:
        raise typer.BadParameter(
            message=f"'{value}' is not a valid tab, supported tabs are: {', '.join(Tab.__members__.values())}",
            param_hint="--tab, -t",
        ) from None
    return pipeline.value


def load_file_callback(ctx: typer.Context, value: Path):
    if ctx.resilient_parsing:
        return
    if not value.is_file():
        raise typer.BadParameter(
            message=f"results file at path: '{value.as_posix()}' does not exist",
        )
    if value.suffix != ".json":
        raise typer.BadParameter(message=f"'{value.name}' is not a JSON results file")
    return value
