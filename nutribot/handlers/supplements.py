from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import Message, CallbackQuery

from nutribot.keyboards import supplements_keyboard
from nutribot.services.supplements import parse_supplement

router = Router()


def _listing(items: list[dict]) -> str:
    if not items:
        return "Nenhum suplemento cadastrado. Adicione com /suplemento Vitamina D 2000UI"
    taken = sum(1 for s in items if s["taken"])
    lines = [f"Suplementos de hoje ({taken}/{len(items)}):"]
    for s in items:
        dose = f" — {s['dosage']}" if s["dosage"] else ""
        lines.append(f"{'✅' if s['taken'] else '⬜'} {s['name']}{dose}")
    lines.append("\nToque para marcar como tomado.")
    return "\n".join(lines)


@router.message(Command("suplemento"))
async def add_supplement_cmd(message: Message, command: CommandObject, db, user_row):
    try:
        name, dosage = parse_supplement(command.args or "")
    except ValueError:
        await message.answer("Formato: /suplemento Vitamina D 2000UI")
        return
    db.add_supplement(user_row.id, name, dosage)
    items = db.list_supplements(user_row.id, db.today())
    await message.answer(_listing(items), reply_markup=supplements_keyboard(items))


@router.message(Command("suplementos"))
async def list_supplements_cmd(message: Message, db, user_row):
    items = db.list_supplements(user_row.id, db.today())
    await message.answer(_listing(items), reply_markup=supplements_keyboard(items) if items else None)


@router.callback_query(F.data.startswith("supp:"))
async def supplement_cb(cb: CallbackQuery, db, user_row):
    # supp:<take|del>:<id>
    parts = cb.data.split(":")
    if len(parts) != 3 or not parts[2].isdigit():
        await cb.answer("Formato inválido")
        return
    action, supplement_id = parts[1], int(parts[2])
    today = db.today()
    if action == "take":
        ok = db.mark_supplement_taken(user_row.id, supplement_id, today)
    elif action == "del":
        ok = db.deactivate_supplement(user_row.id, supplement_id)
    else:
        ok = False
    if not ok:
        await cb.answer("Suplemento não encontrado")
        return

    items = db.list_supplements(user_row.id, today)
    try:
        await cb.message.edit_text(_listing(items), reply_markup=supplements_keyboard(items) if items else None)
    except TelegramBadRequest:
        pass
    await cb.answer("Ok")
