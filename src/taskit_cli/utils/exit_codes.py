"""
Exit codes for Taskit CLI.

Semantic exit codes so scripts can tell why a focus command failed.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or configuration
ERROR_INVALID_ARGS = 2

# Resource not found
ERROR_NOT_FOUND = 5

# Action not allowed in the current timer phase
ERROR_INVALID_STATE = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_INVALID_STATE: "ERROR_INVALID_STATE",
    }
    return code_names.get(code, f"UNKNOWN({code})")

