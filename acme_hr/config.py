import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # SQLAlchemy connection string for the record store
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./data/acme_hr.db")

    # Folder holding areas.csv, cargos.csv, empleados.csv and nominas.csv
    DATA_FOLDER: str = os.getenv("DATA_FOLDER", "./data")

    # HTTP server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 3000))

    # Run the CSV loader before serving
    RUN_ETL_ON_STARTUP: bool = _as_bool(os.getenv("RUN_ETL_ON_STARTUP", "true"))

    # Logging level
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(message)s"


settings = Settings()
