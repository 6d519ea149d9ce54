"""
Sample pipeline payloads shaped like the ones stored in ``finalResults``.
"""

import json
import typing as t


def visibility_payload() -> dict[str, t.Any]:
    return {
        "results": [
            {
                "llmProvider": "openai",
                "llmModel": "gpt-4o",
                "promptIndex": 0,
                "runIndex": 0,
                "mentioned": True,
                "topOfMind": [
                    {"name": "Acme", "type": "ourbrand"},
                    {"name": "Globex", "type": "competitor"},
                ],
                "usedWebSearch": True,
                "citations": [
                    {"url": "https://www.example.com/review", "title": "Review"},
                    {"url": "https://news.example.org/acme"},
                ],
            },
            {
                "llmProvider": "anthropic",
                "llmModel": "claude",
                "promptIndex": 0,
                "runIndex": 0,
                "mentioned": False,
                "topOfMind": ["globex", "Initech"],
                "citations": '[{"url": "https://example.com/other"}]',
            },
            {
                "llmProvider": "openai",
                "llmModel": "gpt-4o",
                "promptIndex": 1,
                "mentioned": False,
                "error": "rate limited",
            },
        ]
    }


def sentiment_payload() -> dict[str, t.Any]:
    return {
        "results": [
            {
                "llmProvider": "openai",
                "llmModel": "gpt-4o",
                "promptIndex": 0,
                "sentiment": "Positive",
                "accuracy": 0.9,
                "extractedPositiveKeywords": ["reliable", "fast"],
                "extractedNegativeKeywords": [],
            },
            {
                "llmProvider": "anthropic",
                "promptIndex": 0,
                "sentiment": "positive",
                "accuracy": 0.7,
                "extractedPositiveKeywords": '["innovative"]',
            },
            {
                "llmProvider": "mistral",
                "promptIndex": 1,
                "sentiment": "negative",
                "accuracy": 0.5,
                "extractedNegativeKeywords": ["expensive"],
            },
        ]
    }


def competition_payload() -> dict[str, t.Any]:
    return {
        "results": [
            {
                "llmProvider": "openai",
                "promptIndex": 0,
                "competitor": "Globex",
                "brandStrengths": ["Price", "Support"],
                "brandWeaknesses": ["Range"],
                "winner": "Acme Corp",
            },
            {
                "llmProvider": "openai",
                "promptIndex": 1,
                "competitor": "Initech",
                "brandStrengths": ["price"],
                "brandWeaknesses": ["Range", "Design"],
                "winner": "Initech",
            },
        ]
    }


def alignment_payload() -> dict[str, t.Any]:
    return {
        "results": [
            {
                "llmProvider": "openai",
                "promptIndex": 0,
                "attributeScores": [
                    {"attribute": "quality", "score": 0.8},
                    {"attribute": "price", "score": 0.4},
                ],
            },
            {
                "llmProvider": "anthropic",
                "promptIndex": 0,
                "attributeScores": [{"attribute": "quality", "score": 0.6}],
            },
        ]
    }


def identity_card_payload() -> dict[str, t.Any]:
    return {
        "id": "project_1",
        "brandName": "Acme",
        "industry": "Hardware",
        "keyBrandAttributes": '["quality", "price"]',
        "competitors": ["Globex", "Initech"],
    }


def final_results(*, as_text: bool = True, legacy_names: bool = False) -> list[dict[str, t.Any]]:
    """
    Build the ``finalResults`` of a completed full batch.

    Parameters
    ----------
    as_text : bool
        Store each ``result`` as JSON text instead of an object.
    legacy_names : bool
        Use the legacy result type names.

    Returns
    -------
    list[dict[str, typing.Any]]
        Final results of a batch execution.
    """
    payloads = {
        ("visibility", "spontaneous"): visibility_payload(),
        ("sentiment", "sentiment"): sentiment_payload(),
        ("competition", "comparison"): competition_payload(),
        ("alignment", "accuracy"): alignment_payload(),
    }
    return [
        {
            "id": f"result_{index}",
            "resultType": legacy if legacy_names else name,
            "result": json.dumps(payload) if as_text else payload,
        }
        for index, ((name, legacy), payload) in enumerate(payloads.items())
    ]
