from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Endpoints and timing for the task client, read once at startup."""
    API_BASE_URL: str = "http://localhost:8000/api"
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_USER_AGENT: str = "FMSMobileApp/1.0"
    GEOCODER_COUNTRY_CODES: str = "my"
    GEOCODER_RESULT_LIMIT: int = 5
    ROUTER_URL: str = "https://router.project-osrm.org"
    ROUTER_PROFILE: str = "driving"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    SEARCH_DEBOUNCE_MS: int = 1000
    MIN_QUERY_LENGTH: int = 3
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @property
    def search_debounce_seconds(self) -> float:
        return self.SEARCH_DEBOUNCE_MS / 1000


def get_client_settings() -> ClientSettings:
    """Return a fresh client settings instance."""
    return ClientSettings()
