from __future__ import annotations
import base64
import html
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from openai import AsyncOpenAI, OpenAIError

from nutribot.services.analyzer import MealEstimate, from_vision
from nutribot.services.energy import PhysicalData

logger = logging.getLogger(__name__)

MEAL_TYPES = ("café da manhã", "lanche da manhã", "almoço", "lanche da tarde", "jantar")
MAX_PLAN_DAYS = 7

MEAL_PLAN_PROMPT = """Você é um nutricionista especializado em criar planos alimentares personalizados.
Gere um plano alimentar para {days} dia(s) com 5 refeições diárias ({meals}), baseado em:
- Perfil: {profile}
- Preferências alimentares: {preferences}
- Meta de calorias diárias: {calories} kcal
- Alimentos a evitar: {excluded}

Responda somente com JSON neste formato:
{{"title": "...", "description": "...", "days": [{{"day": 1, "meals": [
  {{"type": "café da manhã", "name": "...", "ingredients": ["..."], "calories": 0,
    "protein": 0, "carbs": 0, "fat": 0}}]}}]}}"""

EXAM_PROMPT = """Você é uma nutricionista clínica com foco em saúde integrativa e nutrição funcional.
Interprete o exame laboratorial abaixo correlacionando os marcadores entre si e com hábitos
alimentares. Organize a resposta em seções iniciadas por "### " (por exemplo "### Hemograma",
"### Metabolismo", "### Considerações finais"). Destaque o nome de cada marcador com **negrito**
e diga se está elevado, baixo ou normal. Não faça diagnóstico; sugira ajustes nutricionais e
exames complementares quando pertinente."""

MEAL_PHOTO_PROMPT = """Você é um nutricionista que estima calorias a partir de fotos de refeições.
Identifique os alimentos do prato e estime a porção de cada um. Use a legenda do usuário, se houver,
para confirmar ingredientes e modo de preparo.

Responda somente com JSON neste formato:
{"components": ["arroz", "feijão"], "kcal": 0, "confidence": 0.0,
 "refine": "sauce" | "oil" | "portion" | null}

"confidence" vai de 0 a 1. Use "refine" quando molho, óleo ou tamanho da porção forem a maior
fonte de incerteza."""

SUPPORT_PROMPT = """Você é uma coach de bem-estar empática. Responda em português, em no máximo
4 frases, com acolhimento e uma sugestão prática ligada aos hábitos do usuário.
Não faça diagnósticos. Contexto do usuário: {context}"""


class AIError(Exception):
    pass


@dataclass
class PlannedMeal:
    type: str
    name: str
    ingredients: list[str] = field(default_factory=list)
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0


@dataclass
class MealPlan:
    title: str
    description: str
    days: list[list[PlannedMeal]]

    def day_calories(self, idx: int) -> int:
        return sum(m.calories for m in self.days[idx])


def _int(v) -> int:
    try:
        return int(round(float(v)))
    except (TypeError, ValueError):
        return 0


def parse_meal_plan(raw: str) -> MealPlan:
    try:
        data = json.loads(raw)
        days = []
        for day in data["days"]:
            days.append([
                PlannedMeal(
                    type=str(m.get("type", "")),
                    name=str(m.get("name", "")),
                    ingredients=[str(i) for i in m.get("ingredients", [])],
                    calories=_int(m.get("calories")),
                    protein=_int(m.get("protein")),
                    carbs=_int(m.get("carbs")),
                    fat=_int(m.get("fat")),
                )
                for m in day.get("meals", [])
            ])
        return MealPlan(title=str(data.get("title", "Plano alimentar")),
                        description=str(data.get("description", "")), days=days)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise AIError(f"malformed meal plan: {e}") from e


def parse_meal_photo(raw: str) -> MealEstimate:
    try:
        data = json.loads(raw)
        components = [str(c) for c in data.get("components") or []]
        return from_vision(components, _int(data["kcal"]), float(data.get("confidence", 0.5)), data.get("refine"))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise AIError(f"malformed meal estimate: {e}") from e


def describe_profile(data: Optional[PhysicalData]) -> str:
    if data is None:
        return "não informado"
    parts = []
    if data.sex:
        parts.append(f"sexo {data.sex}")
    if data.age:
        parts.append(f"{data.age} anos")
    if data.weight:
        parts.append(f"{data.weight} kg")
    if data.height:
        parts.append(f"{data.height} cm")
    if data.activity_level:
        parts.append(f"atividade {data.activity_level}")
    if data.goal:
        parts.append(f"objetivo {data.goal}")
    return ", ".join(parts) or "não informado"


class AIService:
    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    @classmethod
    def from_key(cls, api_key: str, model: str) -> "AIService":
        return cls(AsyncOpenAI(api_key=api_key), model)

    async def _complete(self, system: str, user: Union[str, list], temperature: float = 0.7, json_mode: bool = False) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                **kwargs,
            )
        except OpenAIError as e:
            logger.error("OpenAI request failed: %s", e)
            raise AIError(str(e)) from e
        content = resp.choices[0].message.content
        if not content:
            raise AIError("empty completion")
        return content.strip()

    async def generate_meal_plan(self, data: Optional[PhysicalData], calories: int,
                                 preferences: str = "", excluded: str = "", days: int = 1) -> MealPlan:
        days = max(1, min(MAX_PLAN_DAYS, days))
        system = MEAL_PLAN_PROMPT.format(
            days=days,
            meals=", ".join(MEAL_TYPES),
            profile=describe_profile(data),
            preferences=preferences or "sem restrições",
            calories=calories,
            excluded=excluded or "nenhum",
        )
        raw = await self._complete(system, "Gere o plano alimentar.", json_mode=True)
        plan = parse_meal_plan(raw)
        logger.info("meal plan generated: %d day(s), %d kcal target", len(plan.days), calories)
        return plan

    async def analyze_meal_photo(self, image: bytes, caption: str = "", mime: str = "image/jpeg") -> MealEstimate:
        url = f"data:{mime};base64,{base64.b64encode(image).decode()}"
        user = [
            {"type": "text", "text": f"Legenda: {caption}" if caption else "Sem legenda."},
            {"type": "image_url", "image_url": {"url": url}},
        ]
        raw = await self._complete(MEAL_PHOTO_PROMPT, user, temperature=0.3, json_mode=True)
        est = parse_meal_photo(raw)
        logger.info("meal photo estimated: %s kcal, %s", est.kcal_mid, ", ".join(est.components))
        return est

    async def analyze_exam(self, exam_type: str, text: str, summary: str = "") -> str:
        user = f"Tipo de exame: {exam_type}\nIndicadores detectados: {summary}\n\nResultado:\n{text}"
        return await self._complete(EXAM_PROMPT, user, temperature=0.3)

    async def motivational_reply(self, message: str, context: str = "") -> str:
        return await self._complete(SUPPORT_PROMPT.format(context=context or "sem dados"), message)


def render_meal_plan(plan: MealPlan) -> str:
    lines = [f"<b>{html.escape(plan.title)}</b>"]
    if plan.description:
        lines.append(html.escape(plan.description))
    for idx, meals in enumerate(plan.days):
        lines.append(f"\n<b>Dia {idx + 1}</b> (~{plan.day_calories(idx)} kcal)")
        for m in meals:
            lines.append(f"• {html.escape(m.type)}: {html.escape(m.name)} ({m.calories} kcal, P{m.protein}/C{m.carbs}/G{m.fat})")
    return "\n".join(lines)
