"""Runtime settings, read from ``POKEDEX_*`` environment variables."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel

ENV_PREFIX = "POKEDEX_"


class Settings(BaseModel):
    api_base_url: str = "https://pokeapi.co/api/v2"
    # large enough to get every location in a single page
    list_limit: int = 10000
    request_timeout: float = 15.0
    dedupe_pokemon_requests: bool = True
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from the environment.

    Only variables that are set override the defaults, e.g. ``POKEDEX_LIST_LIMIT=50``.
    Values are validated by pydantic, so a malformed value raises ``ValidationError``.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for field in Settings.model_fields:
        value = environ.get(ENV_PREFIX + field.upper())
        if value is not None:
            overrides[field] = value
    return Settings(**overrides)
