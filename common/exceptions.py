"""
Tap Arcade - exception hierarchy
Every error raised by the game core derives from GameError.
"""


class GameError(Exception):
    """Base class for all game errors"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ContractViolationError(GameError):
    """Caller bug: an operation invoked in the wrong state or with bad bounds"""

    def __init__(self, message: str, details: str = "", operation: str = "", status: str = ""):
        super().__init__(message, details)
        self.operation = operation
        self.status = status


class ConfigurationError(GameError):
    """Invalid session or config file values"""

    def __init__(self, message: str, details: str = "", config_key: str = ""):
        super().__init__(message, details)
        self.config_key = config_key
