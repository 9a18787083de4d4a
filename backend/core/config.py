# backend/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List
import json


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown keys instead of crashing
        populate_by_name=True,
    )

    # ---- Auth / JWT (verification only; tokens are issued elsewhere)
    secret_key: str = Field("dev-secret-change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # ---- DB (accept either)
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    db_url_compat: Optional[str] = Field(default=None, alias="DB_URL")

    # ---- CORS raw (we'll parse)
    cors_origins_raw: str = Field(
        "http://localhost:3000,http://127.0.0.1:3000",
        alias="CORS_ORIGINS",
    )

    # ---- External interview agent
    agent_provider: str = Field("http", alias="INTERVIEW_AGENT_PROVIDER")  # "http" | "stub"
    agent_url: str = Field("http://127.0.0.1:8080", alias="INTERVIEW_AGENT_URL")
    agent_api_key: Optional[str] = Field(default=None, alias="INTERVIEW_AGENT_API_KEY")
    agent_timeout_seconds: float = Field(30.0, alias="INTERVIEW_AGENT_TIMEOUT")

    # ---- Realtime transcript
    transcript_history_limit: int = Field(50, alias="TRANSCRIPT_HISTORY_LIMIT")

    # ---- Helpers / parsed properties
    @property
    def cors_origins(self) -> List[str]:
        s = (self.cors_origins_raw or "").strip()
        if not s:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        if s.startswith("["):
            try:
                arr = json.loads(s)
                if isinstance(arr, list):
                    return [str(x).strip() for x in arr if str(x).strip()]
            except ValueError:
                pass
        return [x.strip() for x in s.strip("[]").split(",") if x.strip()]

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url or self.db_url_compat or "sqlite:///./interviews.sqlite"

    @property
    def SECRET_KEY(self) -> str:
        return self.secret_key

    @property
    def JWT_ALGORITHM(self) -> str:
        return self.jwt_algorithm

    @property
    def ACCESS_TOKEN_EXPIRE_MINUTES(self) -> int:
        return int(self.access_token_expire_minutes)


settings = Settings()
