import json

import pytest

from brandscope.exceptions import MissingResultError, ResultParseError
from brandscope.models import BatchExecution
from brandscope.results import (
    CompetitionResults,
    SentimentResults,
    VisibilityResults,
    parse_batch_results,
    parse_pipeline_result,
)
from brandscope.status import ResultType
from tests.mocks.payloads import (
    competition_payload,
    final_results,
    identity_card_payload,
    sentiment_payload,
    visibility_payload,
)


def _execution(results: list[dict]) -> BatchExecution:
    return BatchExecution.model_validate(
        {
            "id": "exec_1",
            "status": "completed",
            "finalResults": results,
            "identityCard": identity_card_payload(),
        }
    )


def test_parse_pipeline_result_from_text_and_object_agree():
    from_text = parse_pipeline_result("spontaneous", json.dumps(visibility_payload()))
    from_object = parse_pipeline_result(ResultType.VISIBILITY, visibility_payload())
    assert isinstance(from_text, VisibilityResults)
    assert from_text == from_object


def test_visibility_result_fields():
    parsed = parse_pipeline_result("visibility", visibility_payload())
    first, second, failed = parsed.results
    assert first.model_name == "gpt-4o"
    assert [brand.type for brand in first.top_of_mind] == ["ourbrand", "competitor"]
    assert [brand.name for brand in second.top_of_mind] == ["globex", "Initech"]
    assert second.top_of_mind[0].type == "other"
    assert [citation.url for citation in second.citations] == ["https://example.com/other"]
    assert not failed.is_valid


def test_sentiment_labels_are_normalized():
    payload = sentiment_payload()
    payload["results"].append({"llmProvider": "groq", "sentiment": "mixed"})
    parsed = parse_pipeline_result("sentiment", payload)
    assert isinstance(parsed, SentimentResults)
    assert [result.sentiment for result in parsed.results] == [
        "positive",
        "positive",
        "negative",
        "neutral",
    ]
    assert parsed.results[1].extracted_positive_keywords == ["innovative"]


def test_backend_summary_is_kept():
    payload = competition_payload()
    payload["summary"] = {
        "competitorAnalyses": [],
        "commonStrengths": ["Design"],
        "commonWeaknesses": [],
        "winRate": 0.9,
    }
    parsed = parse_pipeline_result("comparison", payload, brand_name="Acme")
    assert isinstance(parsed, CompetitionResults)
    assert parsed.summary is not None
    assert parsed.summary.common_strengths == ["Design"]
    assert parsed.summary.win_rate == 0.9


def test_missing_win_rate_is_computed():
    payload = competition_payload()
    payload["summary"] = {"commonStrengths": ["Design"]}
    parsed = parse_pipeline_result("competition", payload, brand_name="Acme")
    assert parsed.summary is not None
    assert parsed.summary.common_strengths == ["Design"]
    assert parsed.summary.win_rate == 0.5


def test_parse_pipeline_result_rejects_non_objects():
    with pytest.raises(ResultParseError, match="Expected an object"):
        parse_pipeline_result("visibility", "[]")
    with pytest.raises(ResultParseError):
        parse_pipeline_result("visibility", "{broken")


@pytest.mark.parametrize("as_text", [True, False])
def test_parse_batch_results(as_text):
    results = parse_batch_results(
        _execution(final_results(as_text=as_text, legacy_names=True)),
        required=["visibility", "sentiment", "competition"],
    )
    assert results.available == list(ResultType)
    assert results.visibility is not None
    assert results.visibility.summary is not None
    assert results.visibility.summary.mention_rate == 0.5
    competition = results.get("comparison")
    assert isinstance(competition, CompetitionResults)
    assert competition.summary is not None
    assert competition.summary.win_rate == 0.5


def test_parse_batch_results_reports_missing_pipelines():
    only_visibility = [
        {"resultType": "visibility", "result": json.dumps(visibility_payload())}
    ]
    with pytest.raises(MissingResultError) as exc_info:
        parse_batch_results(
            _execution(only_visibility), required=["visibility", "sentiment", "competition"]
        )
    assert exc_info.value.missing == ["sentiment", "competition"]
    assert str(exc_info.value) == (
        "Missing batch results. Not all pipeline results are available: sentiment, competition"
    )


def test_parse_batch_results_without_requirements():
    results = parse_batch_results(_execution([]))
    assert results.available == []
    assert results.get("alignment") is None


def test_parse_pipeline_result_reports_schema_errors():
    payload = sentiment_payload()
    payload["results"][0]["citations"] = [{"title": "no url"}]
    expected = r"Invalid sentiment result at results\.0\.citations\.0\.url"
    with pytest.raises(ResultParseError, match=expected):
        parse_pipeline_result("sentiment", payload)
