from datetime import timedelta

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from nutribot.services import motivation
from nutribot.services.energy import (
    calculate_bmr, calculate_tdee, get_activity_factor, get_energy_metrics, get_goal_factor,
)
from nutribot.services.exercise import week_progress
from nutribot.services.profile import (
    exercise_goal, physical_data, water_target, week_minutes, week_stats,
)
from nutribot.services.water import describe
from nutribot.texts import HELP, NEED_PROFILE

router = Router()

STREAK_LOOKBACK_DAYS = 60


@router.message(Command("help"))
async def help_cmd(message: Message):
    await message.answer(HELP)


@router.message(Command("hoje"))
async def today_cmd(message: Message, db, user_row):
    targets = db.get_targets(user_row.id)
    if not targets:
        await message.answer(NEED_PROFILE)
        return

    today = db.today()
    low, mid, high = db.day_kcal_sum(user_row.id, today)
    remaining_mid = max(0, targets["kcal_target"] - mid)
    remaining_low = max(0, targets["kcal_target"] - high)
    water = db.get_water_intake(user_row.id, today, water_target(db, user_row.id))
    goal, _ = exercise_goal(db, user_row.id)
    ex = week_progress(week_minutes(db, user_row.id, today), goal)

    await message.answer(
        f"Hoje: ~{mid} kcal (faixa {low}–{high})\n"
        f"Meta: {targets['kcal_target']} kcal\n"
        f"Restam: ~{remaining_mid} kcal (no mínimo {remaining_low})\n\n"
        f"{describe(water)}\n\n"
        f"Exercício na semana: {ex.done} / {ex.goal} min ({ex.percent}%)"
    )


@router.message(Command("energia"))
async def energy_cmd(message: Message, db, user_row):
    data = physical_data(db, user_row.id)
    metrics = get_energy_metrics(data)
    if data is None:
        await message.answer(
            f"Sem perfil, uso valores padrão: {metrics.daily_calories} kcal/dia, "
            f"{metrics.weekly_exercise_target} min de exercício/semana (nível {metrics.current_level}).\n"
            + NEED_PROFILE
        )
        return

    bmr = calculate_bmr(data)
    await message.answer(
        f"Metabolismo basal (Mifflin-St Jeor): ~{int(round(bmr or 0))} kcal\n"
        f"Fator de atividade ({data.activity_level}): ×{get_activity_factor(data.activity_level)}\n"
        f"Gasto diário (TDEE): ~{calculate_tdee(data)} kcal\n"
        f"Fator do objetivo ({data.goal}): ×{get_goal_factor(data.goal)}\n"
        f"Meta diária: {metrics.daily_calories} kcal\n"
        f"Exercício recomendado: {metrics.weekly_exercise_target} min/semana"
    )


@router.message(Command("semana"))
async def week_cmd(message: Message, db, user_row):
    today = db.today()
    stats = week_stats(db, user_row.id, today)
    score = motivation.adherence_score(stats)
    days = db.meal_days(user_row.id, today - timedelta(days=STREAK_LOOKBACK_DAYS), today + timedelta(days=1))
    streak = motivation.current_streak(days, today)
    tips = "\n".join(f"• {t}" for t in motivation.personalized_tips(stats))

    await message.answer(
        f"Pontuação da semana: {score}/100\n"
        f"Água: {int(round(stats.water_pct))}% · exercício: {stats.exercise_days}/7 dias · "
        f"refeições registradas: {stats.calorie_days}/7 dias · suplementos: {int(round(stats.supplements_pct))}%\n\n"
        f"{motivation.weekly_summary(stats)}\n\n"
        f"{motivation.motivational_message(score, streak, stats)}\n\n"
        f"Dicas:\n{tips}"
    )
