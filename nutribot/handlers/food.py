import logging

from aiogram import Bot, Router, F
from aiogram.types import Message, CallbackQuery

from nutribot.keyboards import refine_keyboard
from nutribot.services.analyzer import MealEstimate, analyze, apply_refinement, from_entry, to_json
from nutribot.services.ai import AIError
from nutribot.texts import HOW_TO, NEED_PROFILE

logger = logging.getLogger(__name__)

router = Router()

TIP_KEY = "tip_photo"


def _daily_tip_once(db, user_id: int, key: str) -> bool:
    today = db.today().isoformat()
    if db.get_meta(user_id, key) == today:
        return False
    db.set_meta(user_id, key, today)
    return True


def _remaining(db, user_id: int) -> tuple[int, int, int]:
    targets = db.get_targets(user_id)
    low, mid, high = db.day_kcal_sum(user_id, db.today())
    goal = targets["kcal_target"] if targets else 0
    return mid, max(0, goal - mid), max(0, goal - high)


def _save(db, user_id: int, text: str | None, photo_file_id: str | None, est: MealEstimate) -> int:
    return db.add_food_entry(
        user_id=user_id,
        ts_iso=db.now_iso(),
        text=text,
        photo_file_id=photo_file_id,
        parsed_json=to_json(est),
        kcal_low=est.kcal_low, kcal_high=est.kcal_high, kcal_mid=est.kcal_mid,
        conf=est.conf, err_low=est.err_low, err_high=est.err_high,
    )


@router.message(F.photo)
async def photo_entry(message: Message, bot: Bot, db, user_row, ai):
    if not db.get_profile(user_row.id):
        await message.answer(NEED_PROFILE)
        return

    caption = (message.caption or "").strip()
    est = None
    if ai is not None:
        try:
            buf = await bot.download(message.photo[-1])
            est = await ai.analyze_meal_photo(buf.read(), caption)
        except AIError:
            logger.warning("photo analysis failed for user %s, using the caption", user_row.id)

    if est is None:
        if len(caption) < 3:
            await message.answer("Adicione um comentário curto à foto (1 frase).\n" + HOW_TO)
            return
        est = analyze(caption, has_photo=True)
    entry_id = _save(db, user_row.id, caption or None, message.photo[-1].file_id, est)
    eaten, remaining_mid, remaining_low = _remaining(db, user_row.id)

    resp = (
        f"Entendi: {', '.join(est.components[:6])}\n"
        f"Calorias: ~{est.kcal_mid} kcal (faixa {est.kcal_low}–{est.kcal_high})\n"
        f"Margem de erro: ±{int(round(est.err_low * 100))}–{int(round(est.err_high * 100))}%\n\n"
        f"Hoje: ~{eaten} kcal\n"
        f"Restam: ~{remaining_mid} kcal (no mínimo {remaining_low})\n"
    )
    if est.needs_refine:
        await message.answer(resp + "\nAjuste com um toque:",
                             reply_markup=refine_keyboard(est.refine_kind or "sauce", entry_id))
    else:
        await message.answer(resp)


@router.message(F.text)
async def text_entry(message: Message, db, user_row):
    text = (message.text or "").strip()
    if text.startswith("/") or len(text) < 3:
        return
    if not db.get_profile(user_row.id):
        await message.answer(NEED_PROFILE)
        return

    est = analyze(text, has_photo=False)
    entry_id = _save(db, user_row.id, text, None, est)
    eaten, remaining_mid, _ = _remaining(db, user_row.id)

    resp = (
        f"Ok. ~{est.kcal_mid} kcal (faixa {est.kcal_low}–{est.kcal_high}), "
        f"margem de até ±{int(round(est.err_high * 100))}%.\n"
        f"Restam para hoje: ~{remaining_mid} kcal."
    )
    if _daily_tip_once(db, user_row.id, TIP_KEY):
        resp += "\n\nCom foto a estimativa fica mais precisa. " + HOW_TO
    if est.needs_refine:
        await message.answer(resp, reply_markup=refine_keyboard(est.refine_kind or "sauce", entry_id))
    else:
        await message.answer(resp)


@router.callback_query(F.data.startswith("refine:"))
async def refine(cb: CallbackQuery, db, user_row):
    # refine:<kind>:<val>:<entry_id>
    parts = cb.data.split(":")
    if len(parts) != 4:
        await cb.answer("Formato inválido")
        return
    kind, val, entry_id_s = parts[1], parts[2], parts[3]
    try:
        entry_id = int(entry_id_s)
    except ValueError:
        await cb.answer("Erro")
        return

    entry = db.get_food_entry(entry_id, user_row.id)
    if not entry:
        await cb.answer("Registro não encontrado")
        return

    try:
        est = apply_refinement(from_entry(entry), kind, val)
    except ValueError:
        logger.warning("bad refinement callback %r", cb.data)
        await cb.answer("Opção inválida")
        return

    db.update_food_entry(entry_id, user_row.id, to_json(est),
                         est.kcal_low, est.kcal_high, est.kcal_mid, est.conf, est.err_low, est.err_high)
    _, remaining_mid, _ = _remaining(db, user_row.id)

    await cb.message.answer(
        f"Recalculado: ~{est.kcal_mid} kcal (faixa {est.kcal_low}–{est.kcal_high}), "
        f"margem de até ±{int(round(est.err_high * 100))}%.\n"
        f"Restam para hoje: ~{remaining_mid} kcal."
    )
    await cb.answer("Ok")
