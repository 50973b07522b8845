"""
Engine configuration loaded from environment variables
"""
import os

from pydantic import BaseModel, Field

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment"""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


class EngineConfig(BaseModel):
    """Settings injected into the rules engine"""
    debug_mode: bool = False
    debug_retention_days: int = Field(7, ge=1)
    save_for_later_mode: bool = False

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        return cls(
            debug_mode=env_flag('RULES_DEBUG_MODE'),
            debug_retention_days=int(os.getenv('RULES_DEBUG_RETENTION_DAYS', '7')),
            save_for_later_mode=env_flag('SAVE_FOR_LATER_MODE'),
        )
