import logging
from datetime import timedelta

from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import Message, CallbackQuery

from nutribot.keyboards import water_keyboard
from nutribot.services.body import bmi, bmi_category, parse_measurements, waist_hip_ratio
from nutribot.services.energy import PhysicalData
from nutribot.services.exercise import CUSTOM_GOAL_META_KEY, estimate_session, parse_session, week_progress, week_start
from nutribot.services.profile import exercise_goal, physical_data, refresh_targets, water_target, week_minutes
from nutribot.services.water import describe, glasses_to_ml
from nutribot.texts import NEED_PROFILE

logger = logging.getLogger(__name__)

router = Router()

WATER_HISTORY_DAYS = 7


# water

@router.message(Command("agua"))
async def water_cmd(message: Message, db, user_row):
    today = db.today()
    record = db.get_water_intake(user_row.id, today, water_target(db, user_row.id))
    history = db.water_history(user_row.id, today - timedelta(days=WATER_HISTORY_DAYS - 1), today)
    lines = [describe(record)]
    if history:
        lines.append("\nÚltimos dias:")
        for r in history:
            lines.append(f"{r['day']}: {r['consumed_ml']} / {r['target_ml']} ml")
    await message.answer("\n".join(lines), reply_markup=water_keyboard())


@router.callback_query(F.data.startswith("water:"))
async def water_cb(cb: CallbackQuery, db, user_row):
    try:
        glasses = int(cb.data.split(":", 1)[1])
    except ValueError:
        await cb.answer("Erro")
        return
    record = db.add_water(user_row.id, db.today(), glasses_to_ml(glasses), water_target(db, user_row.id))
    try:
        await cb.message.edit_text(describe(record), reply_markup=water_keyboard())
    except TelegramBadRequest:
        # "message is not modified" when removing a glass at zero
        pass
    if record["consumed_ml"] >= record["target_ml"] > record["consumed_ml"] - glasses_to_ml(glasses):
        await cb.answer("Meta de água do dia atingida! 💧")
    else:
        await cb.answer()


# exercise

@router.message(Command("exercicio"))
async def exercise_cmd(message: Message, command: CommandObject, db, user_row):
    try:
        minutes, activity = parse_session(command.args or "")
    except ValueError:
        await message.answer("Formato: /exercicio 30 corrida (minutos e, opcionalmente, a atividade)")
        return

    data = physical_data(db, user_row.id) or PhysicalData()
    session = estimate_session(data, activity, minutes)
    db.add_exercise(user_row.id, db.now_iso(), session.activity, session.minutes, session.kcal)

    today = db.today()
    goal, _ = exercise_goal(db, user_row.id)
    p = week_progress(week_minutes(db, user_row.id, today), goal)
    kcal = f", ~{session.kcal} kcal" if session.kcal else ""
    text = (
        f"Registrado: {session.minutes} min de {session.activity}{kcal}.\n"
        f"Semana: {p.done} / {p.goal} min ({p.percent}%)"
    )
    if p.remaining:
        text += f", faltam {p.remaining} min."
    else:
        text += ". Meta semanal cumprida! 🎉"
    await message.answer(text)


@router.message(Command("meta_exercicio"))
async def exercise_goal_cmd(message: Message, command: CommandObject, db, user_row):
    arg = (command.args or "").strip().lower()
    if arg in ("auto", "padrao", "padrão"):
        db.set_meta(user_row.id, CUSTOM_GOAL_META_KEY, "0")
        arg = ""
    elif arg:
        if not arg.isdigit() or not 30 <= int(arg) <= 2000:
            await message.answer("Informe a meta semanal em minutos (30–2000), ou /meta_exercicio auto")
            return
        db.set_meta(user_row.id, CUSTOM_GOAL_META_KEY, arg)

    goal, level = exercise_goal(db, user_row.id)
    await message.answer(f"Meta semanal de exercício: {goal} min (nível: {level}).")


@router.message(Command("zerar_exercicio"))
async def exercise_reset_cmd(message: Message, db, user_row):
    removed = db.delete_exercise_since(user_row.id, week_start(db.today()))
    await message.answer(f"Registros da semana apagados ({removed}).")


# body measurements

@router.message(Command("medidas"))
async def measurements_cmd(message: Message, command: CommandObject, db, user_row):
    profile = db.get_profile(user_row.id)
    if not command.args:
        latest = db.latest_measurements(user_row.id)
        if not latest and not profile:
            await message.answer("Formato: /medidas peso 80,5 cintura 92 quadril 100 gordura 22")
            return
        weight = latest.get("weight_kg") or (profile or {}).get("weight_kg")
        value = bmi(weight, (profile or {}).get("height_cm"))
        lines = [f"Peso: {weight} kg" if weight else "Peso: —"]
        if "waist_cm" in latest:
            lines.append(f"Cintura: {latest['waist_cm']} cm")
        if "hip_cm" in latest:
            lines.append(f"Quadril: {latest['hip_cm']} cm")
        if "body_fat_pct" in latest:
            lines.append(f"Gordura corporal: {latest['body_fat_pct']}%")
        ratio = waist_hip_ratio(latest.get("waist_cm"), latest.get("hip_cm"))
        if ratio:
            lines.append(f"Relação cintura/quadril: {ratio}")
        lines.append(f"IMC: {value or '—'} ({bmi_category(value)})")
        weights = [r["weight_kg"] for r in db.measurement_history(user_row.id) if r["weight_kg"]]
        if len(weights) > 1:
            lines.append("Histórico de peso: " + " → ".join(f"{w:g}" for w in reversed(weights)))
        await message.answer("\n".join(lines))
        return

    try:
        values = parse_measurements(command.args)
    except ValueError as e:
        logger.info("bad measurements %r: %s", command.args, e)
        await message.answer("Não entendi. Ex.: /medidas peso 80,5 cintura 92 quadril 100 gordura 22")
        return

    db.add_measurement(user_row.id, db.now_iso(), **values)
    text = "Medidas registradas."
    if "weight_kg" in values and profile:
        db.set_profile_weight(user_row.id, values["weight_kg"])
        t = refresh_targets(db, user_row.id)
        delta = values["weight_kg"] - profile["weight_kg"]
        text += (
            f"\nVariação de peso: {delta:+.1f} kg"
            f"\nNovas metas: {t.kcal} kcal/dia, {t.water_ml} ml de água, {t.weekly_exercise_min} min/semana"
        )
    elif "weight_kg" in values:
        text += "\n" + NEED_PROFILE
    await message.answer(text)
