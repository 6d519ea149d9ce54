import typing as t
from datetime import date, datetime

import structlog
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from brandscope.status import BatchStatus, PromptType, ResultType, TriggerSource
from brandscope.utils.normalize import ensure_list, parse_json_field

log = structlog.get_logger(__name__)


class ApiModel(BaseModel):
    """Base for payloads exchanged with the backend, which speaks camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )


class IdentityCard(ApiModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    brand_name: str
    industry: str | None = None
    market: str | None = None
    short_description: str | None = None
    long_description: str | None = None
    key_brand_attributes: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)
    url: str | None = None
    logo: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user_id: str | None = None
    user_email: str | None = None
    user_language: str | None = None

    @field_validator("key_brand_attributes", "competitors", mode="before")
    @classmethod
    def decode_lists(cls, value: t.Any) -> list:
        return ensure_list(value)


class PromptSet(ApiModel):
    id: str | None = None
    company_id: str | None = Field(
        default=None, validation_alias=AliasChoices("companyId", "projectId", "company_id")
    )
    spontaneous: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("spontaneous", "visibility")
    )
    direct: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("direct", "sentiment")
    )
    comparison: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("comparison", "competition")
    )
    accuracy: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("accuracy", "alignment")
    )
    brand_battle: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("brandBattle", "brand_battle")
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator(
        "spontaneous", "direct", "comparison", "accuracy", "brand_battle", mode="before"
    )
    @classmethod
    def decode_prompts(cls, value: t.Any) -> list:
        # older prompt sets store each list as a JSON string
        return [str(prompt) for prompt in ensure_list(value)]

    def prompts_for(self, result_type: ResultType | str) -> list[str]:
        pipeline = ResultType.parse(result_type)
        if pipeline is ResultType.VISIBILITY:
            return self.spontaneous
        if pipeline is ResultType.SENTIMENT:
            return self.direct
        if pipeline is ResultType.COMPETITION:
            return self.comparison
        return self.accuracy

    @property
    def total_prompts(self) -> int:
        return sum(
            len(prompts)
            for prompts in (
                self.spontaneous,
                self.direct,
                self.comparison,
                self.accuracy,
                self.brand_battle,
            )
        )


class PromptTemplate(ApiModel):
    system_prompt: str
    user_prompt: str


class PromptTemplates(ApiModel):
    spontaneous: PromptTemplate
    direct: PromptTemplate
    comparison: PromptTemplate
    accuracy: PromptTemplate
    brand_battle: PromptTemplate | None = None


class BatchResult(ApiModel):
    id: str | None = None
    batch_execution_id: str | None = None
    result_type: str
    result: t.Any = None
    created_at: datetime | None = None

    @property
    def pipeline(self) -> ResultType | None:
        try:
            return ResultType.parse(self.result_type)
        except ValueError:
            return None

    def parsed_result(self) -> t.Any:
        """Decode ``result``, which the backend stores either as JSON text or an object."""
        return parse_json_field(self.result, field=f"{self.result_type} result")


class BatchExecution(ApiModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    company_id: str | None = Field(
        default=None, validation_alias=AliasChoices("companyId", "projectId", "company_id")
    )
    executed_at: datetime | None = None
    status: BatchStatus = BatchStatus.RUNNING
    final_results: list[BatchResult] = Field(default_factory=list)
    identity_card: IdentityCard | None = Field(
        default=None, validation_alias=AliasChoices("identityCard", "project", "identity_card")
    )
    trigger_source: TriggerSource | None = None
    error_message: str | None = Field(
        default=None, validation_alias=AliasChoices("errorMessage", "error", "error_message")
    )

    @field_validator("final_results", mode="before")
    @classmethod
    def decode_final_results(cls, value: t.Any) -> list:
        return ensure_list(value)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def find_result(self, result_type: ResultType | str) -> BatchResult | None:
        """Return the first final result stored under any spelling of ``result_type``."""
        pipeline = ResultType.parse(result_type)
        for batch_result in self.final_results:
            if batch_result.result_type.lower() in pipeline.aliases:
                return batch_result
        return None

    @property
    def available_pipelines(self) -> list[ResultType]:
        pipelines = []
        for batch_result in self.final_results:
            pipeline = batch_result.pipeline
            if pipeline is None:
                log.debug(
                    event="Ignoring unknown result type",
                    batch_execution_id=self.id,
                    result_type=batch_result.result_type,
                )
                continue
            if pipeline not in pipelines:
                pipelines.append(pipeline)
        return pipelines


class BatchStartResponse(ApiModel):
    success: bool = False
    batch_execution_id: str | None = None
    already_running: bool = False
    message: str | None = None
    error: str | None = None

    @model_validator(mode="before")
    @classmethod
    def unify_nested_fields(cls, data: t.Any):
        # some endpoints nest the execution id inside ``result``
        if not isinstance(data, dict):
            return data
        if data.get("batchExecutionId") or data.get("batch_execution_id"):
            return data
        result = data.get("result")
        if isinstance(result, dict) and result.get("batchExecutionId"):
            return {**data, "batchExecutionId": result["batchExecutionId"]}
        return data


class ReportSummary(ApiModel):
    id: str
    week_start: datetime | None = None
    generated_at: datetime | None = None


class ReportList(ApiModel):
    reports: list[ReportSummary] = Field(default_factory=list)
    total: int = 0


class EmailSendResponse(ApiModel):
    success: bool
    message: str | None = None


class BatchStatistic(ApiModel):
    date: date
    cron: int = 0
    manual: int = 0
    project_creation: int = Field(
        default=0, validation_alias=AliasChoices("project_creation", "projectCreation")
    )
    total: int = 0


class RawResponse(ApiModel):
    id: str
    batch_execution_id: str | None = None
    prompt_type: PromptType
    prompt_index: int = 0
    original_prompt: str | None = None
    llm_response: str | None = None
    llm_response_model: str | None = None
    analyzer_prompt: str | None = None
    analyzer_response: t.Any = None
    analyzer_response_model: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
