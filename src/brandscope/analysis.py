"""
Derived aggregates displayed next to pipeline results.

Every aggregate ignores per-prompt results that carry an ``error`` and
returns a zeroed summary when nothing valid is left.
"""

from __future__ import annotations

import typing as t
from collections import Counter
from urllib.parse import urlparse

import structlog

from brandscope.models import BatchStatistic
from brandscope.results import (
    AlignmentPipelineResult,
    AlignmentResults,
    AlignmentSummary,
    BrandBattleAnalysis,
    BrandVisibilitySummary,
    CompetitionPipelineResult,
    CompetitionResults,
    CompetitionSummary,
    DomainShare,
    MentionCount,
    ModelBreakdown,
    PipelineResult,
    PipelineResults,
    SentimentPipelineResult,
    SentimentResults,
    SentimentSummary,
    VisibilityPipelineResult,
    VisibilityResults,
    VisibilitySummary,
    WebSearchSummary,
    WebsiteCount,
)

log = structlog.get_logger(__name__)

R = t.TypeVar("R", bound=PipelineResult)

POLL_PROGRESS_START = 30.0
POLL_PROGRESS_SPAN = 50.0


def valid_results(results: t.Iterable[R]) -> list[R]:
    return [result for result in results if result.is_valid]


def _ratio(numerator: int | float, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


# Visibility


def summarize_visibility(
    results: t.Sequence[VisibilityPipelineResult], *, top_n: int = 10
) -> VisibilitySummary:
    """
    Compute mention rate and the most frequent top-of-mind brands.

    Parameters
    ----------
    results : typing.Sequence[VisibilityPipelineResult]
        Per-prompt visibility results.
    top_n : int
        Number of brands kept in the ranking.

    Returns
    -------
    VisibilitySummary
        Mention rate in ``[0, 1]``, lower-cased top mentions and their counts.
    """
    valid = valid_results(results)
    if not valid:
        return VisibilitySummary()

    mention_rate = _ratio(sum(1 for result in valid if result.mentioned), len(valid))
    mentions: Counter[str] = Counter()
    for result in valid:
        for brand in result.top_of_mind:
            name = brand.name.strip().lower()
            if name:
                mentions[name] += 1
    ranked = mentions.most_common(top_n)
    return VisibilitySummary(
        mention_rate=mention_rate,
        top_mentions=[mention for mention, _ in ranked],
        top_mention_counts=[
            MentionCount(mention=mention, count=count) for mention, count in ranked
        ],
        top_domains=top_domains(valid, top_n=top_n),
    )


def model_breakdown(results: t.Sequence[VisibilityPipelineResult]) -> list[ModelBreakdown]:
    """Per-model mention rate, distinct prompts tested and runs, highest mention rate first."""
    by_model: dict[str, list[VisibilityPipelineResult]] = {}
    for result in valid_results(results):
        by_model.setdefault(result.model_name, []).append(result)
    breakdown = [
        ModelBreakdown(
            name=name,
            mention_rate=_ratio(
                sum(1 for result in model_results if result.mentioned), len(model_results)
            ),
            prompts_tested=len({result.prompt_index for result in model_results}),
            runs=len(model_results),
        )
        for name, model_results in by_model.items()
    ]
    return sorted(breakdown, key=lambda item: item.mention_rate, reverse=True)


def brand_visibility(results: t.Sequence[VisibilityPipelineResult]) -> BrandVisibilitySummary:
    valid = valid_results(results)
    return BrandVisibilitySummary(
        global_mention_rate=_ratio(sum(1 for result in valid if result.mentioned), len(valid)),
        prompts_tested=len({result.prompt_index for result in valid}),
        total_runs=len(valid),
        model_breakdown=model_breakdown(valid),
    )


# Sentiment


def sentiment_distribution(results: t.Sequence[SentimentPipelineResult]) -> dict[str, int]:
    counts = {"positive": 0, "neutral": 0, "negative": 0}
    for result in valid_results(results):
        counts[result.sentiment] += 1
    return counts


def summarize_sentiment(results: t.Sequence[SentimentPipelineResult]) -> SentimentSummary:
    """
    Compute the overall sentiment label and the average accuracy.

    Parameters
    ----------
    results : typing.Sequence[SentimentPipelineResult]
        Per-prompt sentiment results.

    Returns
    -------
    SentimentSummary
        ``positive`` or ``negative`` only when that label strictly outnumbers
        both others, ``neutral`` otherwise.
    """
    valid = valid_results(results)
    if not valid:
        return SentimentSummary()

    counts = sentiment_distribution(valid)
    positive, neutral, negative = counts["positive"], counts["neutral"], counts["negative"]
    if positive > neutral and positive > negative:
        overall = "positive"
    elif negative > neutral and negative > positive:
        overall = "negative"
    else:
        overall = "neutral"
    return SentimentSummary(
        overall_sentiment=overall,
        overall_sentiment_percentage=_ratio(counts[overall], len(valid)) * 100,
        average_accuracy=_ratio(sum(result.accuracy for result in valid), len(valid)),
    )


# Alignment


def summarize_alignment(results: t.Sequence[AlignmentPipelineResult]) -> AlignmentSummary:
    scores: dict[str, list[float]] = {}
    for result in valid_results(results):
        for attribute_score in result.attribute_scores:
            scores.setdefault(attribute_score.attribute, []).append(attribute_score.score)
    return AlignmentSummary(
        average_attribute_scores={
            attribute: sum(values) / len(values) for attribute, values in scores.items()
        }
    )


def overall_alignment(summary: AlignmentSummary) -> float:
    averages = list(summary.average_attribute_scores.values())
    return _ratio(sum(averages), len(averages))


# Competition


def _merge_unique(target: list[str], items: t.Iterable[str]) -> None:
    seen = {item.lower() for item in target}
    for item in items:
        key = item.strip().lower()
        if key and key not in seen:
            seen.add(key)
            target.append(item.strip())


def _common_points(analyses: list[BrandBattleAnalysis], *, attribute: str) -> list[str]:
    threshold = 2 if len(analyses) > 1 else 1
    counts: Counter[str] = Counter()
    labels: dict[str, str] = {}
    for analysis in analyses:
        for item in getattr(analysis, attribute):
            key = item.lower()
            counts[key] += 1
            labels.setdefault(key, item)
    return [labels[key] for key, count in counts.items() if count >= threshold]


def win_rate(
    results: t.Sequence[CompetitionPipelineResult], *, brand_name: str | None = None
) -> float:
    """
    Share of comparisons won by the brand.

    Results that name a ``winner`` count as won when the winner contains the
    brand name; other results count as won when they list more strengths than
    weaknesses.
    """
    valid = valid_results(results)
    if not valid:
        return 0.0
    normalized_brand = (brand_name or "").strip().lower()
    wins = 0
    for result in valid:
        if result.winner and normalized_brand:
            wins += normalized_brand in result.winner.lower()
        else:
            wins += len(result.brand_strengths) > len(result.brand_weaknesses)
    return wins / len(valid)


def summarize_competition(
    results: t.Sequence[CompetitionPipelineResult],
    *,
    brand_name: str | None = None,
    top_n: int = 10,
) -> CompetitionSummary:
    """
    Merge per-competitor strengths and weaknesses and compute the win rate.

    Parameters
    ----------
    results : typing.Sequence[CompetitionPipelineResult]
        Per-prompt competition results.
    brand_name : str | None
        Analysed brand, matched against ``winner`` fields.
    top_n : int
        Number of key differentiators kept.

    Returns
    -------
    CompetitionSummary
        Analyses ordered by first appearance of each competitor.
    """
    valid = valid_results(results)
    if not valid:
        return CompetitionSummary(win_rate=0.0)

    by_competitor: dict[str, BrandBattleAnalysis] = {}
    for result in valid:
        competitor = result.competitor.strip() or "unknown"
        analysis = by_competitor.setdefault(
            competitor.lower(), BrandBattleAnalysis(competitor=competitor)
        )
        _merge_unique(analysis.brand_strengths, result.brand_strengths)
        _merge_unique(analysis.brand_weaknesses, result.brand_weaknesses)
    analyses = list(by_competitor.values())

    differentiators: Counter[str] = Counter(
        differentiator.strip().lower()
        for result in valid
        for differentiator in result.differentiators
        if differentiator.strip()
    )
    return CompetitionSummary(
        competitor_analyses=analyses,
        common_strengths=_common_points(analyses, attribute="brand_strengths"),
        common_weaknesses=_common_points(analyses, attribute="brand_weaknesses"),
        win_rate=win_rate(valid, brand_name=brand_name),
        key_differentiators=[item for item, _ in differentiators.most_common(top_n)],
    )


# Web search


def domain_from_url(url: str) -> str | None:
    """Return the lower-cased hostname of ``url`` without its ``www.`` prefix."""
    candidate = url.strip()
    if not candidate:
        return None
    parsed = urlparse(candidate if "//" in candidate else f"//{candidate}")
    hostname = parsed.hostname
    if not hostname:
        return None
    return hostname.removeprefix("www.")


def _citation_domains(results: t.Iterable[PipelineResult]) -> Counter[str]:
    domains: Counter[str] = Counter()
    for result in results:
        for citation in result.citations:
            domain = domain_from_url(citation.url)
            if domain:
                domains[domain] += 1
    return domains


def summarize_web_search(results: t.Sequence[PipelineResult]) -> WebSearchSummary:
    valid = valid_results(results)
    domains = _citation_domains(valid)
    ranked = domains.most_common()
    return WebSearchSummary(
        used_web_search=any(result.used_web_search for result in valid),
        web_search_count=sum(1 for result in valid if result.used_web_search),
        consulted_websites=[domain for domain, _ in ranked],
        consulted_website_counts=[
            WebsiteCount(domain=domain, count=count) for domain, count in ranked
        ],
    )


def top_domains(results: t.Sequence[PipelineResult], *, top_n: int = 10) -> list[DomainShare]:
    domains = _citation_domains(valid_results(results))
    total = sum(domains.values())
    return [
        DomainShare(domain=domain, count=count, percentage=round(_ratio(count, total) * 100, 1))
        for domain, count in domains.most_common(top_n)
    ]


# Completion of parsed payloads


def complete_summary(parsed: PipelineResults, *, brand_name: str | None = None) -> PipelineResults:
    """
    Fill in the summaries the backend omitted, leaving provided ones untouched.

    Parameters
    ----------
    parsed : PipelineResults
        Parsed pipeline results.
    brand_name : str | None
        Analysed brand, used for the competition win rate.

    Returns
    -------
    PipelineResults
        Copy of ``parsed`` with every summary populated.
    """
    update: dict[str, t.Any] = {}
    if isinstance(parsed, VisibilityResults):
        if parsed.summary is None:
            update["summary"] = summarize_visibility(parsed.results)
        if parsed.brand_visibility is None:
            update["brand_visibility"] = brand_visibility(parsed.results)
    elif isinstance(parsed, SentimentResults):
        if parsed.summary is None:
            update["summary"] = summarize_sentiment(parsed.results)
    elif isinstance(parsed, CompetitionResults):
        if parsed.summary is None:
            update["summary"] = summarize_competition(parsed.results, brand_name=brand_name)
        elif parsed.summary.win_rate is None:
            update["summary"] = parsed.summary.model_copy(
                update={"win_rate": win_rate(parsed.results, brand_name=brand_name)}
            )
    elif isinstance(parsed, AlignmentResults):
        if parsed.summary is None or not parsed.summary.average_attribute_scores:
            update["summary"] = summarize_alignment(parsed.results)
    if parsed.web_search_summary is None:
        update["web_search_summary"] = summarize_web_search(parsed.results)

    if update:
        log.debug(
            event="Completed missing summaries",
            model=type(parsed).__name__,
            fields=sorted(update),
        )
        return parsed.model_copy(update=update)
    return parsed


# Display helpers


def batch_statistics_totals(statistics: t.Iterable[BatchStatistic]) -> dict[str, int]:
    totals = {"total": 0, "cron": 0, "manual": 0, "project_creation": 0}
    for statistic in statistics:
        totals["total"] += statistic.total
        totals["cron"] += statistic.cron
        totals["manual"] += statistic.manual
        totals["project_creation"] += statistic.project_creation
    return totals


def poll_progress(attempt: int, max_attempts: int) -> float:
    """Progress percentage shown while polling, from 30 up to 80."""
    if max_attempts <= 0:
        return POLL_PROGRESS_START + POLL_PROGRESS_SPAN
    return POLL_PROGRESS_START + min(
        POLL_PROGRESS_SPAN * attempt / max_attempts, POLL_PROGRESS_SPAN
    )
