import os
from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    environment: str = Field("dev", alias="ENVIRONMENT")  # dev|prod
    allow_origins: str = Field("http://localhost:3000", alias="ALLOW_ORIGINS")

    use_sqlite: bool = Field(default=True, alias="USE_SQLITE")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # --- Tonight's pick engine (tunable defaults, not contractual) ---
    tonight_page_size: int = Field(10, alias="TONIGHT_PAGE_SIZE")
    tonight_top_k_genres: int = Field(5, alias="TONIGHT_TOP_K_GENRES")
    tonight_genre_weight: float = Field(0.7, alias="TONIGHT_GENRE_WEIGHT")
    tonight_vote_weight: float = Field(0.3, alias="TONIGHT_VOTE_WEIGHT")
    tonight_cold_start_genre_match: int = Field(50, alias="TONIGHT_COLD_START_GENRE_MATCH")
    tonight_exclude_seen_by_all: bool = Field(False, alias="TONIGHT_EXCLUDE_SEEN_BY_ALL")
    tonight_dedupe_franchises: bool = Field(False, alias="TONIGHT_DEDUPE_FRANCHISES")

    # --- Upstream reads ---
    tonight_upstream_timeout_s: float = Field(5.0, alias="TONIGHT_UPSTREAM_TIMEOUT_S")
    tonight_reasoning_timeout_s: float = Field(2.0, alias="TONIGHT_REASONING_TIMEOUT_S")
    candidate_pool_limit: int = Field(400, alias="CANDIDATE_POOL_LIMIT")
    reasoning_enabled: bool = Field(True, alias="REASONING_ENABLED")
    reasoning_max_chars: int = Field(180, alias="REASONING_MAX_CHARS")
    # Reasons stay premise-level; lines naming outcomes or reveals are dropped.
    spoiler_denylist: List[str] = [
        # plot outcomes
        r"\b(dies|death|kills?|murder(er)?|killer|betray(s|ed)|traitor|twist|revealed?)\b",
        r"\b(ending|ends\s+with|final\s+scene|post[- ]credits?)\b",
        # resurrection/time jump
        r"\b(return(s|ed)?\s+from\s+the\s+dead|time\s+jump)\b",
        # identity/whodunnit
        r"\b(whodunnit|who\s+killed|the\s+killer\s+is)\b",
    ]

    # --- TMDB candidate source ---
    use_real_tmdb: bool = Field(default=False, alias="USE_REAL_TMDB")
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_base_url: str = Field("https://api.themoviedb.org/3", alias="TMDB_BASE_URL")
    tmdb_region: str = Field("US", alias="TMDB_REGION")
    tmdb_discover_pages: int = Field(3, alias="TMDB_DISCOVER_PAGES")
    tmdb_min_vote_count: int = Field(50, alias="TMDB_MIN_VOTE_COUNT")
    tmdb_detail_workers: int = Field(8, alias="TMDB_DETAIL_WORKERS")

    # --- RC hardening ---
    tonight_target_p95_ms: int = Field(250, alias="TONIGHT_TARGET_P95_MS")
    enable_debug_endpoints: bool = Field(False, alias="ENABLE_DEBUG_ENDPOINTS")

    # --- Build info ---
    app_version: str = Field("0.1.0", alias="APP_VERSION")
    git_sha: str | None = Field(None, alias="GIT_SHA")

    def resolved_database_url(self) -> str:
        if self.use_sqlite:
            return (self.database_url or "sqlite:///./.local/tonight.db")
        if self.database_url:
            return self.database_url
        user = os.getenv("POSTGRES_USER", "dev")
        password = os.getenv("POSTGRES_PASSWORD", "dev")
        host = os.getenv("POSTGRES_HOST", "localhost")
        port = os.getenv("POSTGRES_PORT", "5432")
        db = os.getenv("POSTGRES_DB", "tonight")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
