from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Only the bot needs it; the API server runs without.
    telegram_bot_token: str = ""

    llm_provider: str = "openai"  # openai | anthropic | custom

    # OpenAI / custom
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5"

    reply_temperature: float = Field(default=0.4, ge=0, le=2)
    reply_max_tokens: int = Field(default=1024, ge=1)

    # Chat endpoint (server side)
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Relay (client side): where the bot sends conversation turns
    chat_endpoint: str = "http://127.0.0.1:8000/api/chat"
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    # Telegram rejects rapid edits; streamed replies are re-rendered at most
    # once per interval.
    stream_edit_interval_seconds: float = Field(default=1.0, ge=0)

    # Webhook (optional, leave empty to use polling)
    webhook_url: str = ""
    webhook_secret: str = ""
    webhook_port: int = 8443
    webhook_listen: str = "0.0.0.0"


settings = Settings()
