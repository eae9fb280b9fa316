import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DATA_DIR = Path(
    os.getenv("PARKING_DATA_DIR", str(Path(__file__).resolve().parent.parent / "data"))
)


@dataclass(frozen=True)
class IngestionConfig:
    """
    Locations of the raw document exports and the processed CSV files.
    """

    raw_data_dir: Path = _DEFAULT_DATA_DIR / "raw"
    processed_data_dir: Path = _DEFAULT_DATA_DIR / "processed"
    raw_spaces_filename: str = "parking_spaces.json"
    raw_history_filename: str = "parking_history.json"
    spaces_filename: str = "parking_spaces.csv"
    history_filename: str = "parking_history.csv"

    @property
    def spaces_path(self) -> Path:
        return self.processed_data_dir / self.spaces_filename

    @property
    def history_path(self) -> Path:
        return self.processed_data_dir / self.history_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
