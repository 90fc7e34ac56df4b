"""Application configuration.

AppConfig is a frozen dataclass: built once with the App and read everywhere
else, with no string-key lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, storage="sqlite", storage_path="app.db")
    """

    debug: bool = False

    # CORS: a permissive CORSMiddleware is installed at listen() time
    cors: bool = True
    cors_origin: str = "*"

    # Storage
    storage: str = "memory"  # "memory" or "sqlite"
    storage_path: str | Path = ":memory:"

    # Polling transport
    polling: bool = False
    polling_interval: float = 2.0

    # Channel transport
    request_timeout: float | None = None
    channel_buffer: int = 64

    # Logging (applied by the CLI, never by the library itself)
    log_level: str = "info"
