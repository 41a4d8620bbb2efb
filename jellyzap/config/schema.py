"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SESSION_NAME = "jellyfin-notifier"


class WhatsAppConfig(BaseModel):
    """WhatsApp bridge connection and the single group we notify."""
    bridge_url: str = "ws://localhost:3001"
    session: str = DEFAULT_SESSION_NAME  # Session name the bridge persists auth data under
    group_id: str = ""  # Target group JID, e.g. 1203630xxxxxxxx@g.us
    bridge_token: str = ""  # Optional shared secret expected by the bridge
    connect_timeout: float = 20.0
    request_timeout: float = 30.0


class ChannelsConfig(BaseModel):
    """Configuration for chat channels (WhatsApp only)."""
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)


class GatewayConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000


class LivenessConfig(BaseModel):
    """Periodic session health check."""
    interval_seconds: float = 60.0


class LoggingConfig(BaseModel):
    """Log sinks: stderr (text or JSON lines) and an optional rotating file."""
    level: str = "INFO"
    json_logs: bool = False
    file: str = ""  # e.g. ~/.jellyzap/logs/jellyzap.log
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for jellyzap."""
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    liveness: LivenessConfig = Field(default_factory=LivenessConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="JELLYZAP_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    @property
    def group_id(self) -> str:
        return self.channels.whatsapp.group_id
