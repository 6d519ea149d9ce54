"""
Typed view models for the JSON produced by each analysis pipeline.

The backend stores one ``BatchResult`` per pipeline in a batch execution's
``finalResults``; its ``result`` field holds the pipeline payload below,
either as JSON text or as an already-decoded object.
"""

from __future__ import annotations

import typing as t

import structlog
from pydantic import Field, ValidationError, field_validator

from brandscope.exceptions import MissingResultError, ResultParseError
from brandscope.models import ApiModel, BatchExecution
from brandscope.status import ResultType
from brandscope.utils.normalize import ensure_list, parse_json_field

log = structlog.get_logger(__name__)

SentimentLabel = t.Literal["positive", "neutral", "negative"]


class SourceCitation(ApiModel):
    type: str | None = None
    url: str
    title: str | None = None
    text: str | None = None


class ToolUseInfo(ApiModel):
    id: str | None = None
    type: str
    parameters: t.Any = None
    execution_details: dict[str, t.Any] | None = None


class WebSearchQuery(ApiModel):
    query: str
    status: str | None = None
    timestamp: str | None = None
    provider: str | None = None


class WebsiteCount(ApiModel):
    domain: str
    count: int


class DomainShare(WebsiteCount):
    percentage: float


class WebSearchSummary(ApiModel):
    used_web_search: bool = False
    web_search_count: int = 0
    consulted_websites: list[str] = Field(default_factory=list)
    consulted_website_counts: list[WebsiteCount] = Field(default_factory=list)


class MentionCount(ApiModel):
    mention: str
    count: int


class TopOfMindBrand(ApiModel):
    name: str
    type: t.Literal["ourbrand", "competitor", "other"] = "other"
    id: str | None = None


class PipelineResult(ApiModel):
    """Fields shared by the per-prompt results of every pipeline."""

    llm_provider: str
    llm_model: str | None = None
    prompt_index: int = 0
    original_prompt: str | None = None
    llm_response: str | None = None
    error: str | None = None
    used_web_search: bool = False
    citations: list[SourceCitation] = Field(default_factory=list)
    tool_usage: list[ToolUseInfo] = Field(default_factory=list)
    web_search_queries: list[WebSearchQuery] = Field(default_factory=list)

    @field_validator("citations", "tool_usage", "web_search_queries", mode="before")
    @classmethod
    def decode_lists(cls, value: t.Any) -> list:
        return [item for item in ensure_list(value) if isinstance(item, dict)]

    @property
    def is_valid(self) -> bool:
        return not self.error

    @property
    def model_name(self) -> str:
        return self.llm_model or self.llm_provider


# Visibility (legacy name: spontaneous)


class VisibilityPipelineResult(PipelineResult):
    run_index: int | None = None
    mentioned: bool = False
    top_of_mind: list[TopOfMindBrand] = Field(default_factory=list)

    @field_validator("top_of_mind", mode="before")
    @classmethod
    def decode_top_of_mind(cls, value: t.Any) -> list:
        # older results list plain brand names
        return [
            {"name": item} if isinstance(item, str) else item
            for item in ensure_list(value)
            if item
        ]


class VisibilitySummary(ApiModel):
    mention_rate: float = 0.0
    top_mentions: list[str] = Field(default_factory=list)
    top_mention_counts: list[MentionCount] = Field(default_factory=list)
    top_domains: list[DomainShare] = Field(default_factory=list)


class ModelBreakdown(ApiModel):
    name: str
    mention_rate: float
    prompts_tested: int
    runs: int


class BrandVisibilitySummary(ApiModel):
    global_mention_rate: float = 0.0
    prompts_tested: int = 0
    total_runs: int = 0
    model_breakdown: list[ModelBreakdown] = Field(default_factory=list)


class VisibilityResults(ApiModel):
    results: list[VisibilityPipelineResult] = Field(default_factory=list)
    summary: VisibilitySummary | None = None
    web_search_summary: WebSearchSummary | None = None
    brand_visibility: BrandVisibilitySummary | None = None


# Sentiment


class SentimentPipelineResult(PipelineResult):
    sentiment: SentimentLabel = "neutral"
    accuracy: float = 0.0
    extracted_positive_keywords: list[str] = Field(default_factory=list)
    extracted_negative_keywords: list[str] = Field(default_factory=list)

    @field_validator("sentiment", mode="before")
    @classmethod
    def lower_sentiment(cls, value: t.Any):
        if isinstance(value, str):
            lowered = value.strip().lower()
            return lowered if lowered in ("positive", "neutral", "negative") else "neutral"
        return value

    @field_validator("extracted_positive_keywords", "extracted_negative_keywords", mode="before")
    @classmethod
    def decode_keywords(cls, value: t.Any) -> list:
        return ensure_list(value)


class SentimentSummary(ApiModel):
    overall_sentiment: SentimentLabel = "neutral"
    overall_sentiment_percentage: float = 0.0
    average_accuracy: float = 0.0


class SentimentResults(ApiModel):
    results: list[SentimentPipelineResult] = Field(default_factory=list)
    summary: SentimentSummary | None = None
    web_search_summary: WebSearchSummary | None = None


# Competition (legacy name: comparison)


class CompetitionPipelineResult(PipelineResult):
    competitor: str = ""
    brand_strengths: list[str] = Field(default_factory=list)
    brand_weaknesses: list[str] = Field(default_factory=list)
    winner: str | None = None
    differentiators: list[str] = Field(default_factory=list)

    @field_validator("brand_strengths", "brand_weaknesses", "differentiators", mode="before")
    @classmethod
    def decode_points(cls, value: t.Any) -> list:
        return [str(item) for item in ensure_list(value) if item]


class BrandBattleAnalysis(ApiModel):
    competitor: str
    brand_strengths: list[str] = Field(default_factory=list)
    brand_weaknesses: list[str] = Field(default_factory=list)


class CompetitionSummary(ApiModel):
    competitor_analyses: list[BrandBattleAnalysis] = Field(default_factory=list)
    common_strengths: list[str] = Field(default_factory=list)
    common_weaknesses: list[str] = Field(default_factory=list)
    win_rate: float | None = None
    key_differentiators: list[str] = Field(default_factory=list)


class CompetitionResults(ApiModel):
    results: list[CompetitionPipelineResult] = Field(default_factory=list)
    summary: CompetitionSummary | None = None
    web_search_summary: WebSearchSummary | None = None


# Alignment (legacy name: accuracy)


class AttributeAlignmentScore(ApiModel):
    attribute: str
    score: float
    evaluation: str | None = None


class AlignmentPipelineResult(PipelineResult):
    attribute_scores: list[AttributeAlignmentScore] = Field(default_factory=list)

    @field_validator("attribute_scores", mode="before")
    @classmethod
    def decode_scores(cls, value: t.Any) -> list:
        return ensure_list(value)


class AlignmentSummary(ApiModel):
    average_attribute_scores: dict[str, float] = Field(default_factory=dict)


class AlignmentResults(ApiModel):
    results: list[AlignmentPipelineResult] = Field(default_factory=list)
    summary: AlignmentSummary | None = None
    web_search_summary: WebSearchSummary | None = None


PipelineResults = VisibilityResults | SentimentResults | CompetitionResults | AlignmentResults

_RESULT_MODELS: dict[ResultType, type[ApiModel]] = {
    ResultType.VISIBILITY: VisibilityResults,
    ResultType.SENTIMENT: SentimentResults,
    ResultType.COMPETITION: CompetitionResults,
    ResultType.ALIGNMENT: AlignmentResults,
}


class BatchProcessResults(ApiModel):
    visibility: VisibilityResults | None = None
    sentiment: SentimentResults | None = None
    competition: CompetitionResults | None = None
    alignment: AlignmentResults | None = None

    def get(self, result_type: ResultType | str) -> PipelineResults | None:
        return getattr(self, ResultType.parse(result_type).value)

    @property
    def available(self) -> list[ResultType]:
        return [pipeline for pipeline in ResultType if self.get(pipeline) is not None]


def parse_pipeline_result(
    result_type: ResultType | str,
    payload: t.Any,
    *,
    brand_name: str | None = None,
) -> PipelineResults:
    """
    Validate a pipeline payload into its view model and fill in missing summaries.

    Parameters
    ----------
    result_type : ResultType | str
        Pipeline name, canonical or legacy.
    payload : typing.Any
        Pipeline payload, as JSON text or decoded object.
    brand_name : str | None
        Brand name used to compute the competition win rate.

    Returns
    -------
    PipelineResults
        Parsed results with a summary.
    """
    from brandscope import analysis

    pipeline = ResultType.parse(result_type)
    decoded = parse_json_field(payload, field=f"{pipeline.value} result")
    if not isinstance(decoded, dict):
        raise ResultParseError(
            f"Expected an object for {pipeline.value} result, got {type(decoded).__name__}"
        )
    try:
        parsed = _RESULT_MODELS[pipeline].model_validate(decoded)
    except ValidationError as error:
        first = error.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ResultParseError(
            f"Invalid {pipeline.value} result at {location}: {first['msg']}"
        ) from error
    return analysis.complete_summary(parsed, brand_name=brand_name)


def parse_batch_results(
    execution: BatchExecution,
    *,
    required: t.Iterable[ResultType | str] = (),
    brand_name: str | None = None,
) -> BatchProcessResults:
    """
    Parse every known pipeline result of a batch execution.

    Parameters
    ----------
    execution : BatchExecution
        Completed batch execution.
    required : typing.Iterable[ResultType | str]
        Pipelines that must be present.
    brand_name : str | None
        Brand name used to compute the competition win rate; defaults to the
        execution's identity card brand.

    Returns
    -------
    BatchProcessResults
        One view model per pipeline found in ``finalResults``.

    Raises
    ------
    MissingResultError
        If a required pipeline has no result.
    """
    required_pipelines = [ResultType.parse(result_type) for result_type in required]
    missing = [
        pipeline.value for pipeline in required_pipelines if execution.find_result(pipeline) is None
    ]
    if missing:
        raise MissingResultError(missing=missing)

    if brand_name is None and execution.identity_card is not None:
        brand_name = execution.identity_card.brand_name

    parsed: dict[str, PipelineResults] = {}
    for pipeline in ResultType:
        batch_result = execution.find_result(pipeline)
        if batch_result is None:
            continue
        parsed[pipeline.value] = parse_pipeline_result(
            pipeline,
            batch_result.parsed_result(),
            brand_name=brand_name,
        )
        log.debug(
            event="Parsed pipeline result",
            batch_execution_id=execution.id,
            result_type=batch_result.result_type,
            results=len(parsed[pipeline.value].results),
        )
    return BatchProcessResults(**parsed)
