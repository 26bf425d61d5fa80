from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class RecommenderConfig:
    # Reference point used for distances when the caller sends no location (Hamburg city centre).
    default_latitude: float = float(os.getenv("DEFAULT_LATITUDE", "53.5511"))
    default_longitude: float = float(os.getenv("DEFAULT_LONGITUDE", "9.9937"))
    default_radius_km: float = 10.0
    llm_top_n: int = 5


DEFAULT_RECOMMENDER_CONFIG = RecommenderConfig()
