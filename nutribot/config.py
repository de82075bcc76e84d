import os
from dataclasses import dataclass

@dataclass(frozen=True)
class Config:
    bot_token: str
    db_path: str
    tz: str
    openai_api_key: str | None
    openai_model: str
    log_level: str

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)

def load_config() -> Config:
    token = os.getenv("BOT_TOKEN", "").strip()
    if not token:
        raise RuntimeError("BOT_TOKEN is required")
    db_path = os.getenv("DB_PATH", "bot.db").strip()
    tz = os.getenv("TZ", "America/Sao_Paulo").strip()
    openai_api_key = os.getenv("OPENAI_API_KEY", "").strip() or None
    openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return Config(
        bot_token=token,
        db_path=db_path,
        tz=tz,
        openai_api_key=openai_api_key,
        openai_model=openai_model,
        log_level=log_level,
    )
