class DompetError(Exception):
    """Base error for the ledger bot."""


class InferenceError(DompetError):
    """The model endpoint failed or returned nothing usable."""


class KeyValueError(DompetError):
    """The key-value store could not be read or written."""
