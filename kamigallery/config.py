from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Kamigallery"
    debug: bool = False

    # Base URL serving the collection JSON files. Empty means read from data_dir.
    data_url: str = ""
    data_dir: Path = Path(__file__).parent.parent / "data"

    images_file: str = "kamiImage.json"
    traits_file: str = "kamiTraits.json"
    stats_file: str = "kamiStats.json"
    metadata_file: str = "kamiMetadata.json"

    fetch_timeout: float = 30.0
    # Append ?v=<timestamp> and no-cache headers to every data fetch
    cache_busting: bool = True

    page_size: int = 30


settings = Settings()


# =============================================================================
# GALLERY CONSTANTS
# =============================================================================

COLLECTION_NAME = "Kamigotchi"

# Stats present in the stats file, each doubling as a sort order
STAT_NAMES = ("harmony", "health", "power", "violence")

# Rank percentile thresholds for card badges (upper bound, inclusive)
RANK_TIERS = (
    (1.0, "legendary"),
    (5.0, "epic"),
    (15.0, "rare"),
    (40.0, "uncommon"),
)
