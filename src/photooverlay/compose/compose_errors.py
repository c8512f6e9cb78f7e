"""Domain-specific exceptions for the composition pipeline."""


class CompositionError(Exception):
    """Base class for composition-related errors."""


class InputMissingError(CompositionError):
    """Raised when the inline background image is absent."""


class InvalidImagePayloadError(CompositionError):
    """Raised when inline image data cannot be decoded."""


class PayloadTooLargeError(CompositionError):
    """Raised when decoded inline image exceeds configured limits."""


class UnknownCompositionModeError(CompositionError):
    """Raised when a request names a composition mode that does not exist."""


class AssetNotFoundError(CompositionError):
    """Raised when a fixed asset (overlay or background) is missing on disk."""

    def __init__(self, asset: str, path: object) -> None:
        super().__init__(f"{asset} file not found: {path}")
        self.asset = asset
        self.path = path


class RendererSpawnError(CompositionError):
    """Raised when the OS could not launch the renderer process."""


class RendererFailedError(CompositionError):
    """Raised when the renderer exits with a non-zero code."""

    def __init__(self, exit_code: int | None, stderr_text: str) -> None:
        super().__init__(f"renderer failed with code {exit_code}: {stderr_text}")
        self.exit_code = exit_code
        self.stderr_text = stderr_text


class RendererTimeoutError(CompositionError):
    """Raised when the renderer does not finish before the render deadline."""
