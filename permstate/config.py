from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Editing policy
    read_only: bool = False
    require_enabled_for_focus: bool = False
    strict_submodule_lookup: bool = False

    # Notifications
    advanced_notifications: bool = False
    notification_delay: float = Field(default=0.05, ge=0)  # seconds

    model_config = {
        "env_prefix": "PERMSTATE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
