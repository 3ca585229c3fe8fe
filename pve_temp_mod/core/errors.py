"""
PVE Temperature Mod - Errors
Exceptions that end a run early; installer.main() maps them to exit codes
"""


class ModError(Exception):
    """Base class for errors that stop the current action"""

    exit_code = 1


class InvalidInputError(ModError):
    """The operator answered a prompt with something we cannot use"""

    exit_code = 1


class DependencyDeclined(ModError):
    """The operator chose not to install a required package"""

    exit_code = 0
