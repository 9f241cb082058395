from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path
import os


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Standflow API"
    debug: bool = False
    database_url: str = "sqlite:///./standflow.db"
    host: str = "127.0.0.1"
    port: int = 8000
    secret_key: str = ""
    allowed_hosts: str = ""
    static_dir: Path = Path(__file__).parent.parent.parent / "static"
    public_url: str = "http://localhost:8000"
    log_file: str = "logs/application.log"

    # Upload limits (megabytes)
    max_upload_size_mb: int = 50
    max_attachment_size_mb: int = 10

    # Seed list for new templates and newly created stands
    default_voltages: List[str] = ["110V", "220V", "380V", "415V"]


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")


os.makedirs(settings.static_dir, exist_ok=True)
