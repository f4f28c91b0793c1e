"""
Runtime settings

Values come from the environment (optionally a local .env file). Geometry code
never reads these directly; callers pass DPI and margins in explicitly.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Settings(BaseModel):
    print_dpi: float = Field(default=300.0, gt=0)
    screen_dpi: float = Field(default=96.0, gt=0)
    bleed_mm: float = Field(default=4.0, ge=0)
    safe_mm: float = Field(default=4.0, ge=0)
    exports_dir: Path = Path("./exports")
    asset_timeout_s: float = Field(default=15.0, gt=0)
    asset_workers: int = Field(default=4, ge=1)
    allow_remote_assets: bool = True
    # Web layer: local asset root and the only hosts remote images may come from
    assets_dir: Path = Path("./assets")
    remote_asset_hosts: List[str] = Field(default_factory=list)
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"])


def load_settings() -> Settings:
    """Build settings from CARD_BUILDER_* environment variables."""
    cors = _env_list("CARD_BUILDER_CORS_ORIGINS")
    return Settings(
        print_dpi=float(os.getenv("CARD_BUILDER_PRINT_DPI", "300")),
        screen_dpi=float(os.getenv("CARD_BUILDER_SCREEN_DPI", "96")),
        bleed_mm=float(os.getenv("CARD_BUILDER_BLEED_MM", "4")),
        safe_mm=float(os.getenv("CARD_BUILDER_SAFE_MM", "4")),
        exports_dir=Path(os.getenv("CARD_BUILDER_EXPORTS_DIR", "./exports")),
        asset_timeout_s=float(os.getenv("CARD_BUILDER_ASSET_TIMEOUT_S", "15")),
        asset_workers=int(os.getenv("CARD_BUILDER_ASSET_WORKERS", "4")),
        allow_remote_assets=_env_bool("CARD_BUILDER_ALLOW_REMOTE_ASSETS", True),
        assets_dir=Path(os.getenv("CARD_BUILDER_ASSETS_DIR", "./assets")),
        remote_asset_hosts=_env_list("CARD_BUILDER_REMOTE_ASSET_HOSTS"),
        **({"cors_origins": cors} if cors else {}),
    )


settings = load_settings()
