from typing import List, Tuple

from pydantic_settings import BaseSettings


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Summon/1.0; +http://github.com/phindmarsh/summon)"


class ServerSettings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False


class SummonSettings(BaseSettings):
    USER_AGENT: str = DEFAULT_USER_AGENT
    REQUEST_TIMEOUT: float = 10.0

    # Candidate gates
    MIN_FILESIZE: int = 4096  # bytes, checked against Content-Length only
    MIN_RATIO: float = 0.5    # images should have a roughly square ratio
    MAX_RATIO: float = 2.0
    MAX_IMAGES: int = 8

    # (area threshold, quota): stop once `quota` images at or above the
    # threshold have been picked. Largest threshold first.
    PREFERRED_TIERS: List[Tuple[int, int]] = [
        (100000, 1),
        (50000, 3),
        (20000, 4),
        (5000, 8),
    ]

    # Batching
    TRANSFER_WIDTH: int = 4   # candidate fetches in flight
    AUTO_FLUSH_AT: int = 10   # completed results held before a flush
    MAX_CANDIDATES: int = 100

    # MIME classification
    IMAGE_MIMES: List[str] = [
        "image/png", "image/jpg",
        "image/jpeg", "image/pjpeg",
        "image/gif", "image/svg+xml",
    ]
    HTML_MIMES: List[str] = ["text/html", "application/xhtml+xml"]

    class Config:
        env_prefix = "SUMMON_"
        frozen = True


class AppSettings(BaseSettings):
    SERVER: ServerSettings = ServerSettings()
    SUMMON: SummonSettings = SummonSettings()

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = AppSettings()
