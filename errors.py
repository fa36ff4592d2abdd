class TestCaseError(Exception):
    """Base class for every failure the app reports to the user."""


class ConfigurationError(TestCaseError):
    pass


class UnsupportedFileTypeError(TestCaseError):
    pass


class ExtractionError(TestCaseError):
    pass


class UnparseableOutputError(TestCaseError):
    """The model output could not be turned into JSON, even after repair.

    ``text`` holds the repaired text that failed to parse so it can be logged.
    """

    def __init__(self, message: str, text: str):
        super().__init__(message)
        self.text = text


class GenerationError(TestCaseError):
    pass


class ModificationError(TestCaseError):
    pass


class StorageError(TestCaseError):
    pass
