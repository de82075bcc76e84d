import html
import logging

from aiogram import Bot, Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from nutribot.services.ai import AIError
from nutribot.services.exams import (
    MIN_EXAM_CHARS, UnsupportedDocument, clean_text, detect_exam_type, extract_health_indicators, extract_text,
)
from nutribot.services.formatting import format_analysis, split_message
from nutribot.texts import AI_FAILED

logger = logging.getLogger(__name__)

router = Router()

MAX_DOCUMENT_BYTES = 5_000_000
MAX_EXAM_CHARS = 12_000


async def _process_exam(message: Message, db, user_row, ai, content: str):
    content = content[:MAX_EXAM_CHARS]
    if len(content) < MIN_EXAM_CHARS:
        await message.answer("Texto muito curto para um exame. Cole o resultado completo.")
        return

    exam_type = detect_exam_type(content)
    found = extract_health_indicators(content)
    exam_id = db.add_exam(user_row.id, exam_type, content, found.summary)
    await message.answer(
        f"Tipo de exame: <b>{html.escape(exam_type)}</b>\n{html.escape(found.summary)}",
        parse_mode="HTML",
    )

    if ai is None:
        return
    await message.answer("Analisando com IA, aguarde…")
    try:
        analysis = await ai.analyze_exam(exam_type, content, found.summary)
    except AIError:
        await message.answer(AI_FAILED)
        return
    db.set_exam_analysis(exam_id, analysis)
    for part in split_message(format_analysis(analysis)):
        await message.answer(part, parse_mode="HTML")


@router.message(Command("exame"))
async def exam_cmd(message: Message, command: CommandObject, db, user_row, ai):
    if not command.args:
        await message.answer("Envie /exame seguido do texto do resultado, ou mande o arquivo do exame (PDF ou .txt).")
        return
    await _process_exam(message, db, user_row, ai, clean_text(command.args))


@router.message(F.document)
async def exam_document(message: Message, bot: Bot, db, user_row, ai):
    doc = message.document
    if doc.file_size and doc.file_size > MAX_DOCUMENT_BYTES:
        await message.answer("Arquivo muito grande (máx. 5 MB).")
        return
    try:
        buf = await bot.download(doc)
        content = extract_text(doc.file_name or "", buf.read())
    except UnsupportedDocument as e:
        logger.warning("unsupported exam document %s (%s)", doc.file_name, doc.mime_type)
        await message.answer(str(e))
        return
    await _process_exam(message, db, user_row, ai, content)


@router.message(Command("exames"))
async def exams_list_cmd(message: Message, command: CommandObject, db, user_row):
    arg = (command.args or "").strip()
    if arg.isdigit():
        exam = db.get_exam(int(arg), user_row.id)
        if not exam:
            await message.answer("Exame não encontrado.")
            return
        text = exam["analysis"] and format_analysis(exam["analysis"]) or html.escape(exam["summary"])
        for part in split_message(text):
            await message.answer(part, parse_mode="HTML")
        return

    exams = db.recent_exams(user_row.id)
    if not exams:
        await message.answer("Nenhum exame registrado. Use /exame <texto>.")
        return
    lines = ["Últimos exames:"]
    for e in exams:
        flag = " 🧠" if e["analysis"] else ""
        lines.append(f"#{e['id']} {e['ts'][:10]} — {e['exam_type']}{flag}")
    lines.append("\nDetalhes: /exames <número>")
    await message.answer("\n".join(lines))
