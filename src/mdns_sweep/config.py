"""Configuration management for mDNS Sweep."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.common import MDNS_PORT

DEFAULT_SERVICE_TYPES: List[str] = [
    "_services._dns-sd._udp.local",  # Service type enumeration
    "_device-info._tcp.local",
    "_workstation._tcp.local",
    "_http._tcp.local",
    "_https._tcp.local",
    "_ssh._tcp.local",
    "_smb._tcp.local",
    "_afpovertcp._tcp.local",
    "_ipp._tcp.local",
    "_printer._tcp.local",
    "_airplay._tcp.local",
    "_raop._tcp.local",
    "_googlecast._tcp.local",
    "_spotify-connect._tcp.local",
    "_hap._tcp.local",
]


class ScanConfig(BaseModel):
    """Configuration for mDNS range scans."""

    service_types: List[str] = Field(default_factory=lambda: list(DEFAULT_SERVICE_TYPES), description="Service types to query, e.g. '_http._tcp.local'.")
    timeout_seconds: float = Field(default=2.0, gt=0, le=60, description="How long to collect responses for each target.")
    concurrency: int = Field(default=50, ge=1, le=1024, description="Maximum number of targets queried at the same time.")
    watchdog_grace_seconds: float = Field(default=1.0, ge=0, le=60, description="Extra time on top of timeout_seconds before a target is abandoned.")
    port: int = Field(default=MDNS_PORT, ge=1, le=65535, description="Destination UDP port for queries.")
    max_datagram_size: int = Field(default=9000, ge=512, le=65535, description="Receive buffer size per datagram.")
    cidr: Optional[str] = Field(default=None, description="Default target range in CIDR notation.")
    interface: Optional[str] = Field(default=None, description="Default network interface name.")

class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Log format ('console' or 'json')")
    file: Optional[Path] = Field(default=None, description="Log file path")


class Config(BaseSettings):
    """Main configuration for mDNS Sweep. Loads from environment variables prefixed with MDNS_SWEEP_."""

    model_config = SettingsConfigDict(
        env_prefix='MDNS_SWEEP_',
        env_nested_delimiter='__', # e.g., MDNS_SWEEP_SCAN__TIMEOUT_SECONDS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    scan: ScanConfig = Field(default_factory=ScanConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Environment variables are not layered on top.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
