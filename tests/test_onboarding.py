import asyncio

import pytest

from nutribot.handlers.start import _parse_number, activity_step, goal_step
from nutribot.keyboards import activity_keyboard, goal_keyboard


class FakeMessage:
    def __init__(self, text):
        self.text = text
        self.answers = []

    async def answer(self, text, **kwargs):
        self.answers.append((text, kwargs))


def test_parse_number():
    assert _parse_number("62,5", 30, 300) == 62.5
    assert _parse_number(" 165 ", 120, 230) == 165


@pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-inf", "abc", "", None, "500"])
def test_parse_number_rejects(text):
    with pytest.raises(ValueError):
        _parse_number(text, 120, 230)


def test_typing_at_activity_step_resends_keyboard():
    msg = FakeMessage("arroz e feijão")
    asyncio.run(activity_step(msg))
    assert msg.answers[0][1]["reply_markup"] == activity_keyboard()


def test_typing_at_goal_step_resends_keyboard():
    msg = FakeMessage("frango grelhado")
    asyncio.run(goal_step(msg))
    assert msg.answers[0][1]["reply_markup"] == goal_keyboard()
