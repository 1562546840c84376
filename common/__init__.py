from common.config_manager import ConfigManager, get_config
from common.exceptions import (
    GameError,
    ContractViolationError,
    ConfigurationError
)

__all__ = [
    'ConfigManager',
    'get_config',
    'GameError',
    'ContractViolationError',
    'ConfigurationError'
]
