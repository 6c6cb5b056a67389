"""Runtime environment detection."""

import os
from enum import Enum

from .. import config


class Environment(Enum):
    """Detected runtime environment."""

    SERVER = "server"  # long-running HTTP server
    FUNCTION = "function"  # AWS Lambda invocation

    @property
    def is_function(self) -> bool:
        return self is Environment.FUNCTION


def detect_environment() -> Environment:
    """Detect runtime environment from the process environment.

    Returns:
        FUNCTION if $AWS_LAMBDA_FUNCTION_NAME is set, otherwise SERVER
    """
    if os.environ.get(config.LAMBDA_ENV_VAR):
        return Environment.FUNCTION
    return Environment.SERVER
