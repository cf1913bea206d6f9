"""Backend settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:

    host: str = os.getenv("CLOUD_HOST", "127.0.0.1")
    port: int = int(os.getenv("CLOUD_PORT", "8765"))
    log_level: str = os.getenv("CLOUD_LOG_LEVEL", "INFO")

    # Uploaded files and exports
    data_dir: Path = Path(os.getenv("CLOUD_DATA_DIR", "./data"))

    # Load the synthetic terrain when the server starts
    load_default_on_startup: bool = os.getenv("CLOUD_LOAD_DEFAULT", "1") not in ("0", "false", "no")

    # Tool defaults handed to the viewer
    profile_thickness: float = float(os.getenv("CLOUD_PROFILE_THICKNESS", "1.0"))
    preview_points: int = int(os.getenv("CLOUD_PREVIEW_POINTS", "50000"))


settings = Settings()
