from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from nutribot.services.water import GLASS_ML

ACTIVITY_LEVELS = {
    "sed": "sedentário",
    "leve": "levemente ativo",
    "mod": "moderadamente ativo",
    "muito": "muito ativo",
    "extr": "extremamente ativo",
}

GOALS = {
    "perda": "perda de peso",
    "manut": "manutenção",
    "hiper": "hipertrofia",
    "resist": "resistência",
    "saude": "saúde",
}

SEXES = {"m": "masculino", "f": "feminino"}

def sex_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Masculino", callback_data="sex:m"),
         InlineKeyboardButton(text="Feminino", callback_data="sex:f")]
    ])

def refine_keyboard(kind: str, entry_id: int) -> InlineKeyboardMarkup:
    if kind == "sauce":
        buttons = [
            [InlineKeyboardButton(text="Pouco molho", callback_data=f"refine:sauce:low:{entry_id}"),
             InlineKeyboardButton(text="Médio", callback_data=f"refine:sauce:mid:{entry_id}"),
             InlineKeyboardButton(text="Muito", callback_data=f"refine:sauce:high:{entry_id}")]
        ]
    elif kind == "oil":
        buttons = [
            [InlineKeyboardButton(text="Sem óleo", callback_data=f"refine:oil:none:{entry_id}"),
             InlineKeyboardButton(text="Um pouco", callback_data=f"refine:oil:little:{entry_id}"),
             InlineKeyboardButton(text="~1 colher", callback_data=f"refine:oil:1tbsp:{entry_id}")]
        ]
    else:  # portion
        buttons = [
            [InlineKeyboardButton(text="Porção pequena", callback_data=f"refine:portion:small:{entry_id}"),
             InlineKeyboardButton(text="Normal", callback_data=f"refine:portion:normal:{entry_id}"),
             InlineKeyboardButton(text="Grande", callback_data=f"refine:portion:large:{entry_id}")]
        ]
    return InlineKeyboardMarkup(inline_keyboard=buttons)

def activity_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Sedentário", callback_data="act:sed"),
         InlineKeyboardButton(text="Levemente ativo", callback_data="act:leve")],
        [InlineKeyboardButton(text="Moderadamente ativo", callback_data="act:mod"),
         InlineKeyboardButton(text="Muito ativo", callback_data="act:muito")],
        [InlineKeyboardButton(text="Extremamente ativo / atleta", callback_data="act:extr")]
    ])

def goal_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Perda de peso", callback_data="goal:perda"),
         InlineKeyboardButton(text="Manutenção", callback_data="goal:manut")],
        [InlineKeyboardButton(text="Hipertrofia", callback_data="goal:hiper"),
         InlineKeyboardButton(text="Resistência", callback_data="goal:resist")],
        [InlineKeyboardButton(text="Saúde em geral", callback_data="goal:saude")]
    ])

def water_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"+1 copo ({GLASS_ML} ml)", callback_data="water:+1"),
         InlineKeyboardButton(text="−1 copo", callback_data="water:-1")],
        [InlineKeyboardButton(text="+500 ml", callback_data="water:+2")]
    ])

def supplements_keyboard(items: list[dict]) -> InlineKeyboardMarkup:
    rows = []
    for s in items:
        mark = "✅" if s["taken"] else "⬜"
        rows.append([InlineKeyboardButton(text=f"{mark} {s['name']}", callback_data=f"supp:take:{s['id']}"),
                     InlineKeyboardButton(text="🗑", callback_data=f"supp:del:{s['id']}")])
    return InlineKeyboardMarkup(inline_keyboard=rows)
