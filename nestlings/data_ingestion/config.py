from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the seed catalog ingestion.
    """

    seed_path: Path = _DATA_DIR / "seed_products.csv"
    list_separator: str = "|"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
