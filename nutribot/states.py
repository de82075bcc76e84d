from aiogram.fsm.state import StatesGroup, State

class Onboarding(StatesGroup):
    sex = State()
    age = State()
    height = State()
    weight = State()
    activity = State()
    goal = State()

class Conversation(StatesGroup):
    chatting = State()
