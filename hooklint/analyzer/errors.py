"""Exception hierarchy shared by the analyzer modules."""


class HooklintError(Exception):
    """Base class for every error raised by hooklint."""


class ConfigParseError(HooklintError, ValueError):
    """A hook signature or configuration entry could not be parsed."""

    def __init__(self, text: str, reason: str = "Invalid hook format"):
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: {text}")


class SymbolResolutionError(HooklintError, LookupError):
    """The program model could not resolve a symbol or type."""


class UnknownProviderError(HooklintError, KeyError):
    """No catalog provider is registered for the requested version."""

    def __str__(self):
        return str(self.args[0]) if self.args else "unknown provider"


class SnapshotError(HooklintError, ValueError):
    """A program snapshot file is missing or malformed."""
