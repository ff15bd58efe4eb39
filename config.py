"""
Configuration management using Pydantic Settings with safe access wrapper
"""
from pydantic_settings import BaseSettings
from typing import List, Any


class Settings(BaseSettings):
    # Application settings
    app_name: str = "NLP Server"
    version: str = "1.0.0"
    debug: bool = False
    environment: str = "production"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    workers: int = 4

    # Resource settings
    resources_config: str = "resources.yaml"
    strict_resources: bool = False
    enable_language_detector: bool = True
    frame_extractor_workers: int = 1
    max_text_length: int = 100000
    pretty_print_default: bool = False

    # Security settings
    cors_origins: List[str] = ["http://localhost:3000"]
    rate_limit_per_minute: int = 600

    # Logging settings
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file_max_bytes: int = 10485760
    log_file_backup_count: int = 10

    # Monitoring
    enable_metrics: bool = True

    class Config:
        env_file = ".env"
        env_prefix = "NLP_SERVER_"
        case_sensitive = False
        extra = "ignore"   # allow unknown env vars without error

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._validated = False
        self.validate_settings()

    def validate_settings(self):
        """Validate critical settings on startup"""
        if self._validated:
            return

        errors = []

        # Validate environment
        if self.environment not in ["development", "testing", "production"]:
            errors.append(f"Invalid environment: {self.environment}")

        if not self.resources_config:
            errors.append("Resources configuration path is required")

        if self.frame_extractor_workers < 1:
            errors.append("frame_extractor_workers must be at least 1")

        if self.max_text_length < 1:
            errors.append("max_text_length must be positive")

        if self.log_level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            errors.append(f"Invalid log level: {self.log_level}")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        self._validated = True


class SafeSettings:
    """Safe wrapper for settings with fallback defaults"""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._defaults = {
            "resources_config": "resources.yaml",
            "strict_resources": False,
            "enable_language_detector": True,
            "frame_extractor_workers": 1,
            "max_text_length": 100000,
            "pretty_print_default": False,
            "log_level": "INFO",
            "log_dir": "logs",
            "environment": "production",
            "debug": False,
            "enable_metrics": True,
            "rate_limit_per_minute": 600,
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Safely get setting value with fallback"""
        value = getattr(self._settings, key, None)
        if value is None:
            value = self._defaults.get(key, default)
        return value

    def __getattr__(self, key: str) -> Any:
        """Proxy attribute access with safety"""
        return self.get(key)

    @property
    def raw(self) -> Settings:
        """Get raw settings object"""
        return self._settings


# Initialize settings with safety wrapper
_raw_settings = Settings()
settings = SafeSettings(_raw_settings)
