"""Error taxonomy for the Gmail MCP server.

Every failure a tool call can produce is one of these. The dispatcher
catches them at its boundary and renders them as error envelopes, so none
of them ends the process.
"""

from pydantic import ValidationError


class GmailMCPError(Exception):
    """Base class for all server errors."""


class ConfigurationMissing(GmailMCPError):
    """Credentials or token file is absent or unusable.

    Fatal for the current call only; the next call tries to load again.

    Attributes:
        hint: Human-readable remediation (where to obtain or place the file).
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message} {self.hint}"
        return message


class UnknownOperation(GmailMCPError):
    """Tool name is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UpstreamFailure(GmailMCPError):
    """The remote API (or the transport to it) reported an error.

    Attributes:
        status_code: HTTP status when the provider answered, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationFailure(GmailMCPError):
    """Tool arguments (or values derived from them) are invalid."""

    @classmethod
    def from_validation_error(cls, tool_name: str, error: ValidationError) -> "ValidationFailure":
        """Build from a pydantic ValidationError, naming arguments by wire name."""
        problems = []
        for item in error.errors():
            location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
            if item.get("type") == "missing":
                problems.append(f"missing required argument '{location}'")
            else:
                problems.append(f"invalid argument '{location}': {item.get('msg')}")
        return cls(f"Invalid arguments for {tool_name}: " + "; ".join(problems))
