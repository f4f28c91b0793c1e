from pydantic import BaseModel, Field
from typing import Dict

from card_builder.config.settings import settings
from card_builder.renderer.assets import AssetFetcher

# Named export profiles selectable by API clients


class ExportProfile(BaseModel):
    dpi: float = Field(default=300.0, gt=0)
    include_bleed: bool = True
    draw_guides: bool = False


PRINT = ExportProfile(dpi=300.0, include_bleed=True)
PROOF = ExportProfile(dpi=150.0, include_bleed=True, draw_guides=True)
SCREEN = ExportProfile(dpi=96.0, include_bleed=False)

PROFILES: Dict[str, ExportProfile] = {
    "print": PRINT,
    "proof": PROOF,
    "screen": SCREEN,
}


def api_asset_fetcher() -> AssetFetcher:
    """
    Fetcher for client-supplied designs.

    Local paths are confined to the configured asset root; remote images are
    only downloaded from the configured host allow-list (none by default).
    """
    hosts = settings.remote_asset_hosts
    return AssetFetcher(
        base_dir=settings.assets_dir,
        allow_remote=settings.allow_remote_assets and bool(hosts),
        allowed_hosts=hosts,
    )
