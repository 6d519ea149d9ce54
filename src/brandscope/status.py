from enum import Enum


class BatchStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.FAILED)


class ResultType(str, Enum):
    """Analysis pipelines, named the way the backend stores them today."""

    VISIBILITY = "visibility"
    SENTIMENT = "sentiment"
    COMPETITION = "competition"
    ALIGNMENT = "alignment"

    @classmethod
    def parse(cls, value: "str | ResultType") -> "ResultType":
        """Map a canonical or legacy pipeline name to its member."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        normalized = _LEGACY_RESULT_TYPES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"'{value}' is not a valid result type, supported types are: "
                f"{', '.join(sorted(ALL_RESULT_TYPE_NAMES))}"
            ) from None

    @property
    def legacy_name(self) -> str:
        return _LEGACY_NAMES[self]

    @property
    def aliases(self) -> tuple[str, str]:
        return (self.value, self.legacy_name)


_LEGACY_RESULT_TYPES = {
    "spontaneous": "visibility",
    "comparison": "competition",
    "accuracy": "alignment",
}
_LEGACY_NAMES = {
    ResultType.VISIBILITY: "spontaneous",
    ResultType.SENTIMENT: "sentiment",
    ResultType.COMPETITION: "comparison",
    ResultType.ALIGNMENT: "accuracy",
}
ALL_RESULT_TYPE_NAMES = frozenset(
    [member.value for member in ResultType] + list(_LEGACY_RESULT_TYPES)
)

# A "full" batch run needs at least these pipelines in its final results.
FULL_BATCH_RESULT_TYPES = (ResultType.VISIBILITY, ResultType.SENTIMENT, ResultType.COMPETITION)


class TriggerSource(str, Enum):
    CRON = "cron"
    MANUAL = "manual"
    PROJECT_CREATION = "project_creation"


class PromptType(str, Enum):
    SPONTANEOUS = "spontaneous"
    DIRECT = "direct"
    COMPARISON = "comparison"
    ACCURACY = "accuracy"
    BRAND_BATTLE = "brand-battle"
