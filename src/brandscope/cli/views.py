"""Rich renderings of batch executions and pipeline results, one view per tab."""

import typing as t
from datetime import datetime

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from brandscope import analysis
from brandscope.models import BatchExecution, BatchStatistic, PromptSet, ReportList
from brandscope.results import (
    AlignmentResults,
    BatchProcessResults,
    CompetitionResults,
    SentimentResults,
    VisibilityResults,
    WebSearchSummary,
)
from brandscope.status import BatchStatus, ResultType

STATUS_COLORS = {
    BatchStatus.COMPLETED: "green",
    BatchStatus.RUNNING: "yellow",
    BatchStatus.FAILED: "red",
}
SENTIMENT_COLORS = {"positive": "green", "neutral": "yellow", "negative": "red"}


def _format_date(value: datetime | None) -> str:
    return datetime.strftime(value, "%Y-%m-%d %H:%M:%S") if value else "-"


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _preview(items: list[str], limit: int) -> str:
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f" (+{len(items) - limit} more)"
    return shown or "-"


def print_execution(console: Console, execution: BatchExecution) -> None:
    color = STATUS_COLORS[execution.status]
    execution_dict = {
        "ID": execution.id,
        "Project": (
            execution.identity_card.brand_name if execution.identity_card else "Unknown Project"
        ),
        "Status": f"[{color}]{execution.status.value}[/{color}]",
        "Executed At": _format_date(execution.executed_at),
        "Trigger": execution.trigger_source.value if execution.trigger_source else None,
        "Pipelines": ", ".join(pipeline.value for pipeline in execution.available_pipelines),
        "Error": execution.error_message,
    }
    values = "\n".join(f"{key}: {value}" for key, value in execution_dict.items() if value)
    console.print(Panel(values, title="Batch execution", expand=False, highlight=True))


def print_executions(console: Console, executions: list[BatchExecution]) -> None:
    table = Table("ID", "Status", "Executed At", "Trigger", "Pipelines", title="Batch executions")
    for execution in executions:
        color = STATUS_COLORS[execution.status]
        table.add_row(
            execution.id,
            f"[{color}]{execution.status.value}[/{color}]",
            _format_date(execution.executed_at),
            execution.trigger_source.value if execution.trigger_source else "-",
            ", ".join(pipeline.value for pipeline in execution.available_pipelines) or "-",
        )
    console.print(table)


def _web_search_panel(summary: WebSearchSummary | None) -> Panel | None:
    if summary is None or not summary.used_web_search:
        return None
    lines = [f"Web searches: {summary.web_search_count}"]
    for website in summary.consulted_website_counts[:5]:
        lines.append(f"  {website.domain}: {website.count}")
    if len(summary.consulted_website_counts) > 5:
        lines.append(f"  +{len(summary.consulted_website_counts) - 5} more")
    return Panel("\n".join(lines), title="Web search", expand=False)


def render_visibility(results: VisibilityResults) -> Group:
    summary = results.summary or analysis.summarize_visibility(results.results)
    header = Panel(
        f"Mention rate: [bold]{_percent(summary.mention_rate)}[/bold]\n"
        "Share of answers mentioning the brand without being prompted with it.",
        title="Visibility",
        expand=False,
    )
    mentions = Table("Brand", "Mentions", title="Top of mind")
    for mention_count in summary.top_mention_counts:
        mentions.add_row(mention_count.mention, str(mention_count.count))
    if not summary.top_mention_counts:
        for mention in summary.top_mentions:
            mentions.add_row(mention, "-")

    models = Table("Model", "Mention rate", "Prompts", "Runs", title="By model")
    if results.brand_visibility is not None:
        for breakdown in results.brand_visibility.model_breakdown:
            models.add_row(
                breakdown.name,
                _percent(breakdown.mention_rate),
                str(breakdown.prompts_tested),
                str(breakdown.runs),
            )

    details = Table("Model", "Prompt", "Mentioned", "Top of mind", "Citations", title="Answers")
    for result in results.results:
        details.add_row(
            result.model_name,
            str(result.prompt_index),
            "[red]error[/red]" if result.error else ("yes" if result.mentioned else "no"),
            _preview([brand.name for brand in result.top_of_mind], 5),
            str(len(result.citations)),
        )
    parts: list[t.Any] = [header, mentions, models, details]
    web_search = _web_search_panel(results.web_search_summary)
    if web_search is not None:
        parts.append(web_search)
    return Group(*parts)


def render_sentiment(results: SentimentResults) -> Group:
    summary = results.summary or analysis.summarize_sentiment(results.results)
    color = SENTIMENT_COLORS[summary.overall_sentiment]
    distribution = analysis.sentiment_distribution(results.results)
    header = Panel(
        f"Overall sentiment: [{color}]{summary.overall_sentiment}[/{color}] "
        f"({summary.overall_sentiment_percentage:.1f}%)\n"
        f"Average accuracy: {_percent(summary.average_accuracy)}\n"
        + " / ".join(f"{label}: {count}" for label, count in distribution.items()),
        title="Sentiment",
        expand=False,
    )
    details = Table("Model", "Prompt", "Sentiment", "Positive", "Negative", title="Answers")
    for result in results.results:
        label_color = SENTIMENT_COLORS[result.sentiment]
        details.add_row(
            result.model_name,
            str(result.prompt_index),
            "[red]error[/red]"
            if result.error
            else f"[{label_color}]{result.sentiment}[/{label_color}]",
            _preview(result.extracted_positive_keywords, 3),
            _preview(result.extracted_negative_keywords, 3),
        )
    parts: list[t.Any] = [header, details]
    web_search = _web_search_panel(results.web_search_summary)
    if web_search is not None:
        parts.append(web_search)
    return Group(*parts)


def render_competition(results: CompetitionResults) -> Group:
    summary = results.summary or analysis.summarize_competition(results.results)
    lines = []
    if summary.win_rate is not None:
        lines.append(f"Win rate: [bold]{_percent(summary.win_rate)}[/bold]")
    lines.append(f"Common strengths: {_preview(summary.common_strengths, 10)}")
    lines.append(f"Common weaknesses: {_preview(summary.common_weaknesses, 10)}")
    if summary.key_differentiators:
        lines.append(f"Key differentiators: {_preview(summary.key_differentiators, 10)}")
    header = Panel("\n".join(lines), title="Competition", expand=False)
    competitors = Table("Competitor", "Strengths", "Weaknesses", title="Brand battle")
    for competitor_analysis in summary.competitor_analyses:
        competitors.add_row(
            competitor_analysis.competitor,
            _preview(competitor_analysis.brand_strengths, 5),
            _preview(competitor_analysis.brand_weaknesses, 5),
        )
    details = Table("Model", "Prompt", "Competitor", "Strengths", "Weaknesses", title="Answers")
    for result in results.results:
        details.add_row(
            result.model_name,
            str(result.prompt_index),
            result.competitor or "-",
            "[red]error[/red]" if result.error else str(len(result.brand_strengths)),
            "" if result.error else str(len(result.brand_weaknesses)),
        )
    parts: list[t.Any] = [header, competitors, details]
    web_search = _web_search_panel(results.web_search_summary)
    if web_search is not None:
        parts.append(web_search)
    return Group(*parts)


def render_alignment(results: AlignmentResults) -> Group:
    summary = results.summary or analysis.summarize_alignment(results.results)
    header = Panel(
        f"Overall alignment: [bold]{_percent(analysis.overall_alignment(summary))}[/bold]\n"
        "How closely answers match the brand's key attributes.",
        title="Alignment",
        expand=False,
    )
    attributes = Table("Attribute", "Average score", title="Attributes")
    for attribute, score in summary.average_attribute_scores.items():
        attributes.add_row(attribute, _percent(score))
    details = Table("Model", "Prompt", "Scores", title="Answers")
    for result in results.results:
        details.add_row(
            result.model_name,
            str(result.prompt_index),
            "[red]error[/red]"
            if result.error
            else ", ".join(
                f"{score.attribute}: {score.score:.2f}" for score in result.attribute_scores
            ),
        )
    parts: list[t.Any] = [header, attributes, details]
    web_search = _web_search_panel(results.web_search_summary)
    if web_search is not None:
        parts.append(web_search)
    return Group(*parts)


RENDERERS: dict[ResultType, t.Callable[[t.Any], Group]] = {
    ResultType.VISIBILITY: render_visibility,
    ResultType.SENTIMENT: render_sentiment,
    ResultType.COMPETITION: render_competition,
    ResultType.ALIGNMENT: render_alignment,
}


def print_results(
    console: Console, results: BatchProcessResults, tab: ResultType | str | None = None
) -> None:
    tabs = [ResultType.parse(tab)] if tab is not None else results.available
    for pipeline in tabs:
        pipeline_results = results.get(pipeline)
        if pipeline_results is None:
            console.print(f"[yellow]No {pipeline.value} results available[/yellow]")
            continue
        console.rule(f"[bold]{pipeline.value.title()}[/bold]")
        console.print(RENDERERS[pipeline](pipeline_results))


def print_prompt_set(console: Console, prompt_set: PromptSet) -> None:
    table = Table("Pipeline", "#", "Prompt", title="Prompt set")
    for pipeline in ResultType:
        for index, prompt in enumerate(prompt_set.prompts_for(pipeline)):
            table.add_row(pipeline.value, str(index), prompt)
    for index, prompt in enumerate(prompt_set.brand_battle):
        table.add_row("brand battle", str(index), prompt)
    console.print(table)


def print_statistics(console: Console, statistics: list[BatchStatistic]) -> None:
    totals = analysis.batch_statistics_totals(statistics)
    console.print(
        Panel(
            f"Total: {totals['total']}\nCron: {totals['cron']}\n"
            f"Manual: {totals['manual']}\nProject creation: {totals['project_creation']}",
            title="Batch executions",
            expand=False,
        )
    )
    table = Table("Date", "Cron", "Manual", "Project creation", "Total", title="By day")
    for statistic in statistics:
        table.add_row(
            statistic.date.isoformat(),
            str(statistic.cron),
            str(statistic.manual),
            str(statistic.project_creation),
            str(statistic.total),
        )
    console.print(table)


def print_reports(console: Console, report_list: ReportList) -> None:
    table = Table("ID", "Week start", "Generated at", title=f"Reports ({report_list.total})")
    for report in report_list.reports:
        table.add_row(report.id, _format_date(report.week_start), _format_date(report.generated_at))
    console.print(table)
