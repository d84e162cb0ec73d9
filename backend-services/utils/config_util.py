"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024

class Settings(BaseSettings):
    """Process configuration read from the environment (and a .env file).

    NODE_ENV keeps its name from the original deployment so existing
    environment files continue to work.
    """

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    mongodb_uri: str | None = Field(None, alias='MONGODB_URI')
    node_env: str = Field('production', alias='NODE_ENV')

    mongo_max_pool_size: int = Field(10, alias='MONGO_MAX_POOL_SIZE')
    mongo_connect_timeout_ms: int = Field(5000, alias='MONGO_CONNECT_TIMEOUT_MS')
    mongo_socket_timeout_ms: int = Field(45000, alias='MONGO_SOCKET_TIMEOUT_MS')

    max_body_size_bytes: int = Field(DEFAULT_MAX_BODY_SIZE, alias='MAX_BODY_SIZE_BYTES')
    hpp_whitelist: str = Field('', alias='HPP_WHITELIST')

    compression_enabled: bool = Field(True, alias='COMPRESSION_ENABLED')
    compression_level: int = Field(6, alias='COMPRESSION_LEVEL')
    compression_minimum_size: int = Field(1024, alias='COMPRESSION_MINIMUM_SIZE')

    log_level: str = Field('INFO', alias='LOG_LEVEL')
    log_format: str = Field('plain', alias='LOG_FORMAT')

    host: str = Field('0.0.0.0', alias='HOST')
    port: int = Field(5000, alias='PORT')

    @property
    def is_development(self) -> bool:
        return (self.node_env or '').strip().lower() == 'development'

    @property
    def hpp_whitelist_set(self) -> frozenset[str]:
        return frozenset(p.strip() for p in (self.hpp_whitelist or '').split(',') if p.strip())

@lru_cache
def get_settings() -> Settings:
    return Settings()
