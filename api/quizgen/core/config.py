from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_api_key: str = ""  # set it in the .env file
    openrouter_model: str = "mistralai/mistral-7b-instruct"
    openrouter_timeout_s: float = 120.0
    openrouter_referer: str = "http://localhost:3000"
    openrouter_title: str = "Notes-to-Quiz"

    temperature: float = 0.3

    max_source_chars: int = 4000  # extracted text sent upstream is cut to this
    default_question_count: int = 10
    flashcard_count: int = 10

    validate_schema: bool = True  # false = return parsed model JSON as-is

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    disconnect_poll_s: float = 0.5

    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
