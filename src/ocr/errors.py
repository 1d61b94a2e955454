"""Exceptions raised by the OCR pipeline."""


class SignalUnavailableError(RuntimeError):
    """A detection or recognition signal is missing or unusable.

    The document cannot be processed at all when this is raised.
    """
