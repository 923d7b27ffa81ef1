"""
Process configuration loaded from environment variables.

A '.env' file in the working directory is loaded first, so local setups can
keep credentials out of the shell environment.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

from chat_relay.llms.openai import DEFAULT_OPENAI_MODEL

DEFAULT_PORT = 5000


class MissingSettingError(RuntimeError):
    def __init__(self, variable: str):
        super().__init__(f"{variable} is undefined")
        self.variable = variable


class Settings(BaseModel):
    """All credentials and tunables of the relay."""

    database_url: str
    stream_api_key: str
    stream_api_secret: str
    openai_api_key: str
    openai_model: str = DEFAULT_OPENAI_MODEL
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        def required(variable: str) -> str:
            value = os.environ.get(variable)
            if not value:
                raise MissingSettingError(variable)
            return value

        return cls(
            database_url=required("DATABASE_URL"),
            stream_api_key=required("STREAM_API_KEY"),
            stream_api_secret=required("STREAM_API_SECRET"),
            openai_api_key=required("OPENAI_API_KEY"),
            openai_model=os.environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            port=int(os.environ.get("PORT") or DEFAULT_PORT),
            log_level=os.environ.get("LOG_LEVEL") or "INFO",
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
