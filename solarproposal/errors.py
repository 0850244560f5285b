from __future__ import annotations


class ProposalError(Exception):
    """Base class for every error raised by the proposal document engine."""


class UnsupportedImageFormat(ProposalError):
    def __init__(self, message: str, *, attempted: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.attempted = attempted


class InvalidChartInput(ProposalError, ValueError):
    pass


class FontEmbeddingError(ProposalError):
    pass


class DocumentBuildError(ProposalError):
    pass
