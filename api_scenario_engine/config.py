from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_json: bool = True
    strict_validation: bool = False
    default_content_type: str = "application/json"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            log_level=os.getenv("API_SCENARIO_LOG_LEVEL", "INFO").upper(),
            log_json=os.getenv("API_SCENARIO_LOG_JSON", "1") == "1",
            strict_validation=os.getenv("API_SCENARIO_STRICT_VALIDATION", "0") == "1",
            default_content_type=os.getenv("API_SCENARIO_DEFAULT_CONTENT_TYPE", "application/json"),
        )
