"""Exception types raised by cliarg."""


class CLIArgError(Exception):
    """Base class for all cliarg errors."""


class SpecError(CLIArgError):
    """The CLI specification is invalid or cannot produce a target instance."""


class CoercionError(CLIArgError, ValueError):
    """A raw argument value could not be converted to the declared type."""
