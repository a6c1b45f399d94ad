"""Error taxonomy for manifest execution."""


class ManifestKGError(Exception):
    """Base class for all errors raised while executing a manifest.

    Every error can carry the step path, column and row index it relates to.
    The executor fills in the step path when a handler did not.
    """

    def __init__(
        self,
        message: str,
        *,
        step_path: str | None = None,
        column: str | None = None,
        row_index: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.step_path = step_path
        self.column = column
        self.row_index = row_index

    def with_step(self, step_path: str) -> "ManifestKGError":
        """Attach the step path if none is set yet."""
        if self.step_path is None:
            self.step_path = step_path
        return self

    def __str__(self) -> str:
        location: list[str] = []
        if self.step_path is not None:
            location.append(f"step '{self.step_path}'")
        if self.column is not None:
            location.append(f"column '{self.column}'")
        if self.row_index is not None:
            location.append(f"row {self.row_index}")

        if not location:
            return self.message
        return f"[{', '.join(location)}] {self.message}"


class ConfigurationError(ManifestKGError):
    """Malformed manifest or step definition."""


class ResolutionError(ManifestKGError):
    """A referenced class, property or entity does not exist."""


class ConflictError(ManifestKGError):
    """A term was re-declared with incompatible values."""


class SourceReadError(ManifestKGError):
    """A row source could not be read or contains malformed rows."""


class RunCancelledError(ManifestKGError):
    """Execution was cancelled before it completed."""
