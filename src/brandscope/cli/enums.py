from enum import StrEnum


class Tab(StrEnum):
    visibility = "visibility"
    sentiment = "sentiment"
    competition = "competition"
    alignment = "alignment"


class PipelineName(StrEnum):
    visibility = "visibility"
    sentiment = "sentiment"
    competition = "competition"
    alignment = "alignment"
    spontaneous = "spontaneous"
    comparison = "comparison"
    accuracy = "accuracy"
