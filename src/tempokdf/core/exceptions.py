"""
Exceptions for the tempokdf package
Everything raised on purpose derives from TempoKDFError so callers have one
general error catcher
"""


class TempoKDFError(Exception):
    # general container for errors
    pass


class InvalidArgumentError(TempoKDFError, ValueError):
    # raised for bad iteration counts, precisions, key lengths and the like
    pass


class CPUTimeError(TempoKDFError):
    # raised when the OS refuses to report CPU time
    pass


class KeyFound(TempoKDFError):
    # returned (not raised) by a search predicate once the key matches

    def __init__(self, message: str = "key found"):
        super().__init__(message)


class SearchTimeout(TempoKDFError):
    # search status when the time budget ran out before the key was found

    def __init__(self, message: str = "key search timeout"):
        super().__init__(message)


# shared signal instances
KEY_FOUND = KeyFound()
TIMEOUT = SearchTimeout()
