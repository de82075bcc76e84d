import logging

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from nutribot.services import motivation
from nutribot.services.ai import AIError, render_meal_plan
from nutribot.services.energy import get_energy_metrics
from nutribot.services.profile import physical_data, week_stats
from nutribot.states import Conversation
from nutribot.texts import AI_DISABLED, AI_FAILED

logger = logging.getLogger(__name__)

router = Router()

STOP_WORDS = ("/sair", "/cancel", "sair", "tchau")


@router.message(Command("plano"))
async def meal_plan_cmd(message: Message, command: CommandObject, db, user_row, ai):
    if ai is None:
        await message.answer(AI_DISABLED)
        return
    # "/plano vegetariano; sem lactose" -> preferences; excluded
    args = (command.args or "").split(";", 1)
    preferences = args[0].strip()
    excluded = args[1].strip() if len(args) > 1 else ""

    data = physical_data(db, user_row.id)
    metrics = get_energy_metrics(data)
    await message.answer(f"Gerando plano de ~{metrics.daily_calories} kcal/dia, aguarde…")
    try:
        plan = await ai.generate_meal_plan(data, metrics.daily_calories, preferences, excluded)
    except AIError:
        await message.answer(AI_FAILED)
        return
    await message.answer(render_meal_plan(plan), parse_mode="HTML")


@router.message(Command("conversa"))
async def chat_cmd(message: Message, command: CommandObject, state: FSMContext, db, user_row, ai):
    if ai is None:
        await message.answer(AI_DISABLED)
        return
    await state.set_state(Conversation.chatting)
    logger.info("conversation started by user %s", user_row.id)
    if command.args:
        await _reply(message, state, db, user_row, ai, command.args.strip())
        return
    await message.answer("Estou aqui para ouvir. Como você está se sentindo hoje? (/sair para encerrar)")


@router.message(Conversation.chatting, F.text)
async def chat_message(message: Message, state: FSMContext, db, user_row, ai):
    await _reply(message, state, db, user_row, ai, (message.text or "").strip())


async def _reply(message: Message, state: FSMContext, db, user_row, ai, text: str):
    if text.lower() in STOP_WORDS:
        await state.clear()
        await message.answer("Conversa encerrada. Cuide-se! 💚")
        return
    if ai is None:
        await state.clear()
        await message.answer(AI_DISABLED)
        return

    stats = week_stats(db, user_row.id, db.today())
    context = (
        f"pontuação semanal {motivation.adherence_score(stats)}/100, "
        f"água {int(stats.water_pct)}%, exercício {stats.exercise_days}/7 dias, "
        f"refeições registradas {stats.calorie_days}/7 dias"
    )
    try:
        reply = await ai.motivational_reply(text, context)
    except AIError:
        await message.answer(AI_FAILED)
        return
    await message.answer(reply)
