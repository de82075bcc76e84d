import asyncio
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from nutribot.services.ai import AIError, AIService, parse_meal_photo, parse_meal_plan, render_meal_plan
from nutribot.services.energy import PhysicalData

PLAN = {
    "title": "Plano <leve>",
    "description": "Rico em fibras",
    "days": [{"day": 1, "meals": [
        {"type": "café da manhã", "name": "Aveia com banana", "ingredients": ["aveia", "banana"],
         "calories": 350, "protein": 12, "carbs": 60, "fat": 6},
        {"type": "almoço", "name": "Arroz, feijão e frango", "calories": "650.4",
         "protein": 40, "carbs": 80, "fat": 15},
    ]}],
}


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _service(content=None, error=None):
    completions = FakeCompletions(content, error)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return AIService(client, model="test-model"), completions


def test_parse_meal_plan():
    plan = parse_meal_plan(json.dumps(PLAN))
    assert plan.title == "Plano <leve>"
    assert [m.calories for m in plan.days[0]] == [350, 650]
    assert plan.day_calories(0) == 1000


@pytest.mark.parametrize("raw", ["not json", "{}", '{"days": [1]}'])
def test_parse_meal_plan_malformed(raw):
    with pytest.raises(AIError):
        parse_meal_plan(raw)


def test_generate_meal_plan():
    ai, completions = _service(json.dumps(PLAN))
    data = PhysicalData(age=30, weight=70, height=170, sex="feminino", goal="perda de peso")
    plan = asyncio.run(ai.generate_meal_plan(data, 1800, "vegetariano", days=30))
    assert len(plan.days) == 1

    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    system = call["messages"][0]["content"]
    assert "1800 kcal" in system
    assert "vegetariano" in system
    assert "7 dia(s)" in system


def test_render_meal_plan_escapes():
    text = render_meal_plan(parse_meal_plan(json.dumps(PLAN)))
    assert "<b>Plano &lt;leve&gt;</b>" in text
    assert "Dia 1</b> (~1000 kcal)" in text


def test_analyze_exam():
    ai, completions = _service("### Metabolismo\n**Glicose** elevada")
    out = asyncio.run(ai.analyze_exam("glicemia", "Glicose 126", "1 indicadores"))
    assert out.startswith("### Metabolismo")
    assert "response_format" not in completions.calls[0]
    assert "Glicose 126" in completions.calls[0]["messages"][1]["content"]


def test_openai_error_wrapped():
    ai, _ = _service(error=OpenAIError("boom"))
    with pytest.raises(AIError):
        asyncio.run(ai.motivational_reply("estou cansada"))


def test_empty_completion():
    ai, _ = _service(content="")
    with pytest.raises(AIError):
        asyncio.run(ai.motivational_reply("oi", "pontuação 50/100"))


def test_analyze_meal_photo():
    reply = {"components": ["arroz", "feijão", "bife"], "kcal": 720, "confidence": 0.8, "refine": "oil"}
    ai, completions = _service(json.dumps(reply))
    est = asyncio.run(ai.analyze_meal_photo(b"\xff\xd8jpeg", "almoço de domingo"))
    assert est.components == ["arroz", "feijão", "bife"]
    assert est.kcal_low < est.kcal_mid == 720 < est.kcal_high
    assert est.needs_refine and est.refine_kind == "oil"

    call = completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    text_part, image_part = call["messages"][1]["content"]
    assert "almoço de domingo" in text_part["text"]
    assert image_part["image_url"]["url"] == "data:image/jpeg;base64,/9hqcGVn"


def test_parse_meal_photo_unknown_refine():
    est = parse_meal_photo('{"components": [], "kcal": "430.6", "refine": "cheese"}')
    assert est.kcal_mid == 431
    assert est.components == ["prato"]
    assert est.needs_refine is False


@pytest.mark.parametrize("raw", ["nope", '{"components": ["arroz"]}', '{"kcal": 300, "confidence": "alta"}'])
def test_parse_meal_photo_malformed(raw):
    with pytest.raises(AIError):
        parse_meal_photo(raw)


def test_meal_photo_error_wrapped():
    ai, _ = _service(error=OpenAIError("vision down"))
    with pytest.raises(AIError):
        asyncio.run(ai.analyze_meal_photo(b"img"))
