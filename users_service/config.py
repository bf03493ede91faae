import os
from pydantic import BaseModel
from dotenv import load_dotenv


class Settings(BaseModel):
    service_name: str = "users-service"
    port: int = 8000
    log_level: str = "INFO"
    log_file: str = "logs.json"

    @classmethod
    def from_env(cls) -> "Settings":
        # Lecture unique au démarrage du process
        load_dotenv()
        return cls(
            port=int(os.getenv("PORT", 8000)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs.json"),
        )
