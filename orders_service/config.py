import os
from pydantic import BaseModel, PositiveFloat
from dotenv import load_dotenv


class Settings(BaseModel):
    service_name: str = "orders-service"
    port: int = 8002
    # URL du Users Service (de local à Docker)
    users_service_url: str = "http://localhost:8000"
    users_service_timeout: PositiveFloat = 5.0
    log_level: str = "INFO"
    log_file: str = "logs.json"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            port=int(os.getenv("PORT", 8002)),
            users_service_url=os.getenv("USERS_SERVICE_URL", "http://localhost:8000"),
            users_service_timeout=float(os.getenv("USERS_SERVICE_TIMEOUT", 5.0)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs.json"),
        )
