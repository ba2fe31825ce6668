from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _allowed_hosts_from_env() -> tuple[str, ...]:
    raw = os.getenv("SCRAPE_ALLOWED_HOSTS", "amazon.com,www.amazon.com")
    return tuple(h.strip().lower() for h in raw.split(",") if h.strip())


@dataclass(frozen=True)
class ScraperConfig:
    allowed_hosts: tuple[str, ...] = field(default_factory=_allowed_hosts_from_env)
    timeout: float = max(1.0, float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "8")))
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    max_text_chars: int = 4000
    max_redirects: int = 5


DEFAULT_SCRAPER_CONFIG = ScraperConfig()
