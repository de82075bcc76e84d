from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from typing import Callable, Dict, Any, Optional
from nutribot.db import DB
from nutribot.services.ai import AIService

class DBMiddleware(BaseMiddleware):
    def __init__(self, db: DB, cfg, ai: Optional[AIService] = None):
        super().__init__()
        self.db = db
        self.cfg = cfg
        self.ai = ai

    async def __call__(self, handler: Callable, event: TelegramObject, data: Dict[str, Any]) -> Any:
        # Inject common deps
        data["db"] = self.db
        data["cfg"] = self.cfg
        data["ai"] = self.ai

        from_user = getattr(event, "from_user", None)
        if from_user:
            chat_obj = getattr(event, "chat", None)
            if chat_obj and getattr(chat_obj, "id", None):
                chat_id = chat_obj.id
            else:
                msg = getattr(event, "message", None)
                chat_id = getattr(getattr(msg, "chat", None), "id", 0) if msg else 0

            user_row = self.db.get_or_create_user(from_user.id, int(chat_id or 0))
            data["user_row"] = user_row

        return await handler(event, data)
