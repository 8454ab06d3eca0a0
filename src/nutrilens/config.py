"""Application configuration.

Settings come from `NUTRILENS_*` environment variables. A `.env` file is read from the path in
`NUTRILENS_ENV_FILE`, or from the working directory when one exists there. Every credential is
optional: a missing key disables the matching source or the remote synthesis step.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """NutriLens settings.

    All fields are environment-configurable. Prefix is `NUTRILENS_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="NUTRILENS_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    log_level: str = Field(default="INFO")

    # Synthesis (OpenAI-compatible). Without a key the rule-based recommendation is used.
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=60.0, ge=1.0, le=600.0)
    synthesis_max_tokens: int = Field(default=1024, ge=64, le=8192)
    synthesis_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    llm_max_retries: int = Field(default=1, ge=0, le=10)

    # Web / regulatory search (Exa)
    exa_api_key: str | None = Field(default=None)
    exa_base_url: str = Field(default="https://api.exa.ai")

    # PubMed E-utilities
    pubmed_base_url: str = Field(default="https://eutils.ncbi.nlm.nih.gov/entrez/eutils")
    pubmed_tool: str = Field(default="nutrilens")
    pubmed_email: str | None = Field(default=None)
    pubmed_api_key: str | None = Field(default=None)

    # Semantic Scholar
    semantic_scholar_base_url: str = Field(default="https://api.semanticscholar.org/graph/v1")
    semantic_scholar_api_key: str | None = Field(default=None)
    semantic_scholar_cache_ttl_s: float = Field(default=300.0, ge=0.0, le=86400.0)
    semantic_scholar_min_interval_s: float = Field(default=1.0, ge=0.0, le=60.0)

    # Product lookup
    open_food_facts_base_url: str = Field(default="https://world.openfoodfacts.org/api/v0")

    # Networking
    http_timeout_s: float = Field(default=15.0, ge=1.0, le=300.0)
    http_user_agent: str = Field(default="NutriLens/0.1 (ingredient research)")
    source_max_retries: int = Field(default=2, ge=0, le=10)
    source_retry_backoff_s: float = Field(default=0.5, ge=0.0, le=30.0)
    source_retry_max_backoff_s: float = Field(default=4.0, ge=0.0, le=120.0)

    # Research sizing
    research_max_results: int = Field(default=5, ge=1, le=50)
    quick_max_results: int = Field(default=3, ge=1, le=20)
    health_max_results: int = Field(default=10, ge=1, le=50)
    regulatory_max_results: int = Field(default=5, ge=1, le=50)
    web_evidence_limit: int = Field(default=5, ge=0, le=50)


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("NUTRILENS_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
