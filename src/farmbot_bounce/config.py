from __future__ import annotations

from pydantic import BaseModel, Field

from farmbot_bounce.env import (
    EnvMapping,
    get_bool,
    get_float,
    get_int,
    get_optional_str,
    get_secret,
    get_str,
)
from farmbot_bounce.errors import ConfigurationError

DEFAULT_SERVER = "https://my.farm.bot"


class BounceSettings(BaseModel):
    """Environment-driven configuration for the bounce client."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    server: str = Field(default=DEFAULT_SERVER)
    loop_interval: float = Field(default=3.0, gt=0)
    move_step: float = Field(default=1.0, gt=0)
    move_speed: int = Field(default=100, gt=0, le=100)
    rpc_timeout: float = Field(default=30.0, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)
    mqtt_port: int = Field(default=1883, ge=1, le=65535)
    reset_busy_on_failure: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, env: EnvMapping | None = None) -> BounceSettings:
        """Build settings from ``FARMBOT_*`` variables.

        Raises ConfigurationError before anything else happens when the
        email or password is missing, so no network call is ever attempted
        without credentials.
        """
        email = get_optional_str("FARMBOT_EMAIL", env=env)
        password = get_secret("FARMBOT_PASSWORD", env=env)
        if not email or not password:
            raise ConfigurationError(
                "You did not set FARMBOT_EMAIL or FARMBOT_PASSWORD in the environment."
            )

        return cls(
            email=email,
            password=password,
            server=get_optional_str("FARMBOT_SERVER", env=env) or DEFAULT_SERVER,
            loop_interval=get_float("FARMBOT_LOOP_INTERVAL", 3.0, env=env),
            move_step=get_float("FARMBOT_MOVE_STEP", 1.0, env=env),
            move_speed=get_int("FARMBOT_MOVE_SPEED", 100, env=env),
            rpc_timeout=get_float("FARMBOT_RPC_TIMEOUT", 30.0, env=env),
            http_timeout=get_float("FARMBOT_HTTP_TIMEOUT", 30.0, env=env),
            mqtt_port=get_int("FARMBOT_MQTT_PORT", 1883, env=env),
            reset_busy_on_failure=get_bool("FARMBOT_RESET_BUSY_ON_FAILURE", True, env=env),
            log_level=get_str("LOG_LEVEL", "INFO", env=env),
        )
