import math

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from nutribot.keyboards import ACTIVITY_LEVELS, GOALS, SEXES, activity_keyboard, goal_keyboard, sex_keyboard
from nutribot.services.energy import calculate_bmr, calculate_tdee, physical_data_from_onboarding
from nutribot.services.profile import refresh_targets
from nutribot.states import Onboarding
from nutribot.texts import HOW_TO

router = Router()


def _parse_number(text: str | None, lo: float, hi: float) -> float:
    value = float((text or "").strip().replace(",", "."))
    if not math.isfinite(value) or value < lo or value > hi:
        raise ValueError(f"{value} not in [{lo}, {hi}]")
    return value


@router.message(Command("start"))
async def start_cmd(message: Message, state: FSMContext):
    await state.clear()
    await state.set_state(Onboarding.sex)
    await message.answer(
        "Olá! Vamos montar seu perfil para calcular suas metas de energia, água e exercício.\n"
        "Sexo biológico:",
        reply_markup=sex_keyboard(),
    )


@router.callback_query(Onboarding.sex, F.data.startswith("sex:"))
async def sex_cb(cb: CallbackQuery, state: FSMContext):
    code = cb.data.split(":", 1)[1]
    if code not in SEXES:
        await cb.answer("Opção inválida")
        return
    await state.update_data(sex=SEXES[code])
    await state.set_state(Onboarding.age)
    await cb.message.answer("Idade (em anos)? Ex.: 32")
    await cb.answer()


@router.message(Onboarding.sex)
async def sex_step(message: Message, state: FSMContext):
    s = (message.text or "").strip().lower()
    if s not in SEXES:
        await message.answer("Escolha no teclado ou responda m / f", reply_markup=sex_keyboard())
        return
    await state.update_data(sex=SEXES[s])
    await state.set_state(Onboarding.age)
    await message.answer("Idade (em anos)? Ex.: 32")


@router.message(Onboarding.age)
async def age_step(message: Message, state: FSMContext):
    try:
        age = int(_parse_number(message.text, 10, 100))
    except ValueError:
        await message.answer("Idade em números, ex.: 32")
        return
    await state.update_data(age=age)
    await state.set_state(Onboarding.height)
    await message.answer("Altura em cm? Ex.: 165")


@router.message(Onboarding.height)
async def height_step(message: Message, state: FSMContext):
    try:
        h = _parse_number(message.text, 120, 230)
    except ValueError:
        await message.answer("Altura em cm, ex.: 165")
        return
    await state.update_data(height_cm=h)
    await state.set_state(Onboarding.weight)
    await message.answer("Peso em kg? Ex.: 62,5")


@router.message(Onboarding.weight)
async def weight_step(message: Message, state: FSMContext):
    try:
        w = _parse_number(message.text, 30, 300)
    except ValueError:
        await message.answer("Peso em kg, ex.: 62,5")
        return
    await state.update_data(weight_kg=w)
    await state.set_state(Onboarding.activity)
    await message.answer("Nível de atividade física:", reply_markup=activity_keyboard())


@router.callback_query(Onboarding.activity, F.data.startswith("act:"))
async def activity_cb(cb: CallbackQuery, state: FSMContext):
    code = cb.data.split(":", 1)[1]
    if code not in ACTIVITY_LEVELS:
        await cb.answer("Opção inválida")
        return
    await state.update_data(activity=ACTIVITY_LEVELS[code])
    await state.set_state(Onboarding.goal)
    await cb.message.answer("Objetivo principal:", reply_markup=goal_keyboard())
    await cb.answer()


@router.message(Onboarding.activity)
async def activity_step(message: Message):
    await message.answer("Escolha o nível de atividade no teclado:", reply_markup=activity_keyboard())


@router.message(Onboarding.goal)
async def goal_step(message: Message):
    await message.answer("Escolha o objetivo no teclado:", reply_markup=goal_keyboard())


@router.callback_query(Onboarding.goal, F.data.startswith("goal:"))
async def goal_cb(cb: CallbackQuery, db, user_row, state: FSMContext):
    code = cb.data.split(":", 1)[1]
    if code not in GOALS:
        await cb.answer("Opção inválida")
        return

    data = await state.get_data()
    db.upsert_profile(
        user_id=user_row.id,
        sex=data["sex"],
        age=int(data["age"]),
        height_cm=float(data["height_cm"]),
        weight_kg=float(data["weight_kg"]),
        activity=data["activity"],
        goal=GOALS[code],
    )
    t = refresh_targets(db, user_row.id)
    pd = physical_data_from_onboarding({
        "age": data["age"], "weight": data["weight_kg"], "height": data["height_cm"],
        "sex": data["sex"], "activityLevel": data["activity"], "fitnessGoal": GOALS[code],
    })
    bmr = calculate_bmr(pd)

    await cb.message.answer(
        "Perfil salvo.\n"
        f"Metabolismo basal: ~{int(round(bmr))} kcal\n"
        f"Gasto diário (TDEE): ~{calculate_tdee(pd)} kcal\n"
        f"Meta diária: {t.kcal} kcal\n"
        f"Proteína: ~{t.protein_g} g, fibras: ~{t.fiber_g} g\n"
        f"Água: {t.water_ml} ml/dia\n"
        f"Exercício: {t.weekly_exercise_min} min/semana\n\n"
        + HOW_TO
    )
    await state.clear()
    await cb.answer()
