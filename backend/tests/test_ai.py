"""
Tests for AI content generation.

The LLM client is replaced by the `llm` fixture; each test sets the
completion it should return.
"""
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from heartcart.core.config import settings
from heartcart.core.exceptions import AINotConfiguredError, AIServiceError
from heartcart.services.content_generator import (
    missing_seo_elements,
    parse_amount,
    parse_descriptions,
    parse_tags,
    truncate,
)
from heartcart.services.llm_client import LLMClient, extract_json

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def test_parse_descriptions_blocks():
    text = "DESCRIPTION 1: First one.\n\nDESCRIPTION 2: Second one.\ndescription 3 : Third."

    assert parse_descriptions(text) == ["First one.", "Second one.", "Third."]


def test_parse_descriptions_without_markers():
    assert parse_descriptions("  Just one description. ") == ["Just one description."]
    assert parse_descriptions("   ") == []


def test_parse_tags():
    text = '1. Rattan, boho decor, rattan, a very long tag phrase, "lighting".'

    assert parse_tags(text) == ["Rattan", "boho decor", "lighting"]


def test_parse_tags_caps_count():
    assert len(parse_tags(", ".join(f"tag{i}" for i in range(20)))) == 10


def test_truncate_at_word_boundary():
    text = "Handwoven rattan pendant lamp with natural finish for living rooms"

    result = truncate(text, 30)

    assert len(result) <= 30
    assert result == "Handwoven rattan pendant..."
    assert truncate("  short   title ", 30) == "short title"


def test_extract_json():
    assert extract_json('{"a": 1}') == {"a": 1}
    assert extract_json('Sure!\n```json\n{"a": {"b": 2}}\n```') == {"a": {"b": 2}}
    with pytest.raises(ValueError):
        extract_json("[1, 2]")
    with pytest.raises(ValueError):
        extract_json("no json here")


def _fake_provider(name, create):
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return SimpleNamespace(name=name, client=client, model=f"{name}-model")


def _completion(content):
    return SimpleNamespace(
        usage=SimpleNamespace(total_tokens=12),
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
    )


async def test_llm_client_without_keys_is_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "openrouter_api_key", None)
    monkeypatch.setattr(settings, "openai_api_key", None)
    client = LLMClient()

    assert client.is_configured is False
    with pytest.raises(AINotConfiguredError):
        await client.chat_completion([{"role": "user", "content": "hi"}])


async def test_llm_client_falls_back_to_second_provider():
    client = LLMClient(openrouter_api_key="or-key", openai_api_key="oa-key", max_retries=1)
    failing = AsyncMock(side_effect=RuntimeError("rate limited"))
    working = AsyncMock(return_value=_completion('{"metaTitle": "Lamp"}'))
    client.providers = [_fake_provider("deepseek", failing), _fake_provider("openai", working)]

    result = await client.chat_completion([{"role": "user", "content": "hi"}], json_mode=True)

    assert result["metaTitle"] == "Lamp"
    assert result["_metadata"]["ai_provider"] == "openai"
    assert result["_metadata"]["tokens_used"] == 12
    assert working.call_args.kwargs["response_format"] == {"type": "json_object"}


async def test_llm_client_reports_total_failure():
    client = LLMClient(openrouter_api_key="or-key", max_retries=1, prefer_deepseek=True)
    client.providers = [_fake_provider("deepseek", AsyncMock(return_value=_completion("")))]

    with pytest.raises(AIServiceError):
        await client.chat_completion([{"role": "user", "content": "hi"}])


async def test_status(async_client, admin_headers):
    response = await async_client.get("/api/ai/status", headers=admin_headers)

    assert response.json() == {"configured": True, "providers": []}


async def test_ai_routes_require_admin(async_client, user_headers):
    response = await async_client.post("/api/ai/tags", json={"name": "Lamp"}, headers=user_headers)

    assert response.status_code == 403


async def test_generate_descriptions(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {
        "content": "DESCRIPTION 1: Warm light.\nDESCRIPTION 2: Woven by hand.\nDESCRIPTION 3: Boho charm."
    }

    response = await async_client.post(
        "/api/ai/descriptions",
        json={"name": "Rattan Lamp", "tone": "friendly", "length": "short"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["descriptions"] == ["Warm light.", "Woven by hand.", "Boho charm."]
    prompt = llm.chat_completion.call_args.args[0][1]["content"]
    assert "Tone: Friendly" in prompt
    assert "50-100 words" in prompt


async def test_empty_descriptions_are_an_upstream_error(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": "  "}

    response = await async_client.post("/api/ai/descriptions", json={"name": "Lamp"}, headers=admin_headers)

    assert response.status_code == 502


async def test_unconfigured_ai_returns_503(async_client, admin_headers, llm):
    llm.chat_completion.side_effect = AINotConfiguredError("AI content generation is not configured")

    response = await async_client.post("/api/ai/tags", json={"name": "Lamp"}, headers=admin_headers)

    assert response.status_code == 503


async def test_seo_is_truncated(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {
        "metaTitle": "Handwoven Rattan Pendant Lamp with Natural Finish for Living Rooms and Bedrooms",
        "metaDescription": "Bring warmth to any room " * 10,
        "keywords": ["rattan lamp", " ", "pendant light"],
        "suggestions": ["Add dimensions"],
    }

    response = await async_client.post("/api/ai/seo", json={"name": "Rattan Lamp"}, headers=admin_headers)

    body = response.json()
    assert len(body["metaTitle"]) <= 60
    assert len(body["metaDescription"]) <= 160
    assert body["metaDescription"].endswith("...")
    assert body["keywords"] == ["rattan lamp", "pendant light"]
    assert llm.chat_completion.call_args.kwargs["json_mode"] is True


async def test_seo_falls_back_to_product_name(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {}

    response = await async_client.post("/api/ai/seo", json={"name": "Rattan Lamp"}, headers=admin_headers)

    assert response.json()["metaTitle"] == "Rattan Lamp"
    assert response.json()["metaDescription"] == "Rattan Lamp"


async def test_enhance_keeps_input_on_bad_json(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": "I cannot help with that."}

    response = await async_client.post(
        "/api/ai/enhance", json={"name": "Lamp", "description": "A lamp."}, headers=admin_headers
    )

    assert response.json() == {"title": "Lamp", "description": "A lamp."}


async def test_generate_tags(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": "rattan, pendant lamp, boho"}

    response = await async_client.post("/api/ai/tags", json={"name": "Lamp"}, headers=admin_headers)

    assert response.json() == {"tags": ["rattan", "pendant lamp", "boho"]}


async def test_price_suggestion_from_ai(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": '{"suggestedPrice": 89.99}'}

    response = await async_client.post(
        "/api/ai/price", json={"name": "Lamp", "costPrice": "50"}, headers=admin_headers
    )

    assert response.json() == {"suggestedPrice": 89.99, "markupPercentage": 79.98, "source": "ai_suggestion"}


@pytest.mark.parametrize(
    ("answer", "expected"),
    [
        ("1,299.00", Decimal("1299.00")),
        ("R1,299", Decimal("1299.00")),
        ("About R 12,500.5 retail", Decimal("12500.50")),
        ("89.99", Decimal("89.99")),
        (450, Decimal("450.00")),
        ("no idea", None),
    ],
)
def test_parse_amount(answer, expected):
    assert parse_amount(answer) == expected


async def test_price_suggestion_with_thousands_separator(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": '{"suggestedPrice": "1,299.00"}'}

    response = await async_client.post(
        "/api/ai/price", json={"name": "Couch", "costPrice": "800"}, headers=admin_headers
    )

    assert response.json() == {"suggestedPrice": 1299.0, "markupPercentage": 62.38, "source": "ai_suggestion"}


async def test_price_below_cost_uses_markup_rule(async_client, admin_headers, llm):
    await async_client.post("/api/pricing/rules", json={"markupPercentage": 30}, headers=admin_headers)
    llm.chat_completion.return_value = {"content": "About R40"}

    response = await async_client.post(
        "/api/ai/price", json={"name": "Lamp", "costPrice": "50"}, headers=admin_headers
    )

    assert response.json() == {"suggestedPrice": 65.0, "markupPercentage": 30.0, "source": "global_default"}


async def test_price_below_cost_without_rules_uses_cost(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"content": "no idea"}

    response = await async_client.post(
        "/api/ai/price", json={"name": "Lamp", "costPrice": "50"}, headers=admin_headers
    )

    assert response.json() == {"suggestedPrice": 50.0, "markupPercentage": 0.0, "source": "cost_price_minimum"}


async def test_generate_for_draft_stores_suggestion(async_client, admin_headers, llm):
    draft = (await async_client.post("/api/drafts", json={"name": "Lamp"}, headers=admin_headers)).json()
    llm.chat_completion.return_value = {"metaTitle": "Rattan Lamp", "metaDescription": "Woven light."}

    response = await async_client.post(
        f"/api/ai/drafts/{draft['id']}", json={"kind": "seo"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["kind"] == "seo"
    assert response.json()["suggestion"]["meta_title"] == "Rattan Lamp"
    stored = (await async_client.get(f"/api/drafts/{draft['id']}", headers=admin_headers)).json()
    assert stored["hasAiSeo"] is True
    assert stored["aiSuggestions"]["seo"]["meta_description"] == "Woven light."
    # Suggestions are not applied to the draft fields
    assert stored["metaTitle"] is None


async def test_price_for_draft_needs_cost(async_client, admin_headers):
    draft = (await async_client.post("/api/drafts", json={"name": "Lamp"}, headers=admin_headers)).json()

    response = await async_client.post(
        f"/api/ai/drafts/{draft['id']}", json={"kind": "price"}, headers=admin_headers
    )

    assert response.status_code == 400


def test_missing_seo_elements():
    assert missing_seo_elements("Lamp", " ", [" "], "A lamp.") == ["meta_description", "meta_keywords"]
    assert missing_seo_elements(None, None, None, None) == [
        "meta_title", "meta_description", "meta_keywords", "description"
    ]


async def test_vision_request_skips_providers_without_vision_model():
    client = LLMClient(openrouter_api_key="or-key", openai_api_key="oa-key", max_retries=1)
    text_only = AsyncMock()
    vision = AsyncMock(return_value=_completion('{"name": "Lamp"}'))
    client.providers = [
        SimpleNamespace(**vars(_fake_provider("deepseek", text_only)), vision_model=None),
        SimpleNamespace(**vars(_fake_provider("openai", vision)), vision_model="gpt-4o-mini"),
    ]

    result = await client.chat_completion([{"role": "user", "content": "hi"}], json_mode=True, vision=True)

    assert result["name"] == "Lamp"
    assert result["_metadata"]["ai_model"] == "gpt-4o-mini"
    assert vision.call_args.kwargs["model"] == "gpt-4o-mini"
    text_only.assert_not_called()


async def test_seo_analysis(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {
        "currentScore": 140,
        "recommendations": ["Add a meta description", " "],
        "missingElements": ["meta_title", "image_alt_text"],
        "competitorKeywords": ["boho lamp"],
    }

    response = await async_client.post(
        "/api/ai/seo/analyze",
        json={"name": "Rattan Lamp", "metaTitle": "Rattan Lamp", "description": "Woven light."},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "score": 100,
        "recommendations": ["Add a meta description"],
        "missingElements": ["meta_description", "meta_keywords", "image_alt_text"],
        "competitorKeywords": ["boho lamp"],
    }
    prompt = llm.chat_completion.call_args.args[0][1]["content"]
    assert "Meta Description: Missing" in prompt


async def test_seo_analysis_baseline_score(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"recommendations": ["Write a description"]}

    response = await async_client.post("/api/ai/seo/analyze", json={"name": "Lamp"}, headers=admin_headers)

    assert response.json()["score"] == 0
    assert response.json()["missingElements"] == [
        "meta_title", "meta_description", "meta_keywords", "description"
    ]


async def test_seo_analysis_for_draft(async_client, admin_headers, llm):
    draft = (
        await async_client.post(
            "/api/drafts",
            json={"name": "Lamp", "metaTitle": "Lamp", "metaKeywords": "lamp, rattan"},
            headers=admin_headers,
        )
    ).json()
    llm.chat_completion.return_value = {"currentScore": 55}

    response = await async_client.post(
        f"/api/ai/drafts/{draft['id']}", json={"kind": "seo_analysis"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["suggestion"]["score"] == 55
    assert response.json()["suggestion"]["missing_elements"] == ["meta_description", "description"]


async def test_analyze_image(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {
        "name": "Rattan Pendant Lamp",
        "description": "A woven pendant lamp.",
        "category": "Home Decor",
        "brand": "",
        "tags": ["rattan", "pendant lamp", "Rattan"],
        "costPrice": "R1,200",
        "price": 1899.5,
    }

    response = await async_client.post(
        "/api/ai/analyze-image",
        files={"file": ("lamp.png", PNG, "image/png")},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json() == {
        "name": "Rattan Pendant Lamp",
        "description": "A woven pendant lamp.",
        "category": "Home Decor",
        "brand": "",
        "tags": ["rattan", "pendant lamp"],
        "costPrice": 1200.0,
        "price": 1899.5,
    }
    assert llm.chat_completion.call_args.kwargs["vision"] is True
    content = llm.chat_completion.call_args.args[0][1]["content"]
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")


async def test_analyze_image_drops_price_below_cost(async_client, admin_headers, llm):
    llm.chat_completion.return_value = {"name": "Mug", "costPrice": 80, "price": 60}

    response = await async_client.post(
        "/api/ai/analyze-image",
        files={"file": ("mug.png", PNG, "image/png")},
        headers=admin_headers,
    )

    assert response.json()["costPrice"] == 80.0
    assert response.json()["price"] is None


async def test_analyze_image_rejects_non_images(async_client, admin_headers, llm):
    response = await async_client.post(
        "/api/ai/analyze-image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    llm.chat_completion.assert_not_called()
