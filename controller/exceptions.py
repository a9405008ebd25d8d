"""Custom exception classes for the distribution engine."""


class DFSException(Exception):
    """
    Base exception class for all DFS-related errors.
    """
    pass


class ConfigurationError(DFSException):
    """
    Raised when no usable backend credentials are configured.
    """
    pass


class SourceNotFound(DFSException):
    """
    Raised when a job's local input file is missing at claim time.
    """
    pass


class NotFound(DFSException):
    """
    Raised when a requested master file or job does not exist.
    """
    pass


class BackendAuthError(DFSException):
    """
    Raised when a storage account's credential cannot be refreshed or authenticated.
    """

    def __init__(self, message: str, account_id: str = None):
        super().__init__(message)
        self.account_id = account_id


class BackendIOError(DFSException):
    """
    Raised when a put/get/delete against a storage backend fails.
    """

    def __init__(self, message: str, account_id: str = None, object_id: str = None):
        super().__init__(message)
        self.account_id = account_id
        self.object_id = object_id


class QuotaExceededError(BackendIOError):
    """
    Raised when a storage account rejects a write because its quota is exhausted.
    """
    pass


class RegistryIntegrityError(DFSException):
    """
    Raised on a duplicate or missing chunk sequence number.
    """
    pass


class DecryptionError(DFSException):
    """
    Raised when ciphertext does not decrypt under the recorded key and IV.
    """
    pass


class PartialDataError(DFSException):
    """
    Raised when one or more chunks of a master file cannot be fetched or decrypted.
    """

    def __init__(self, message: str, master_file_uuid: str = None, sequence_number: int = None):
        super().__init__(message)
        self.master_file_uuid = master_file_uuid
        self.sequence_number = sequence_number


class JobCancelledError(DFSException):
    """
    Raised inside the worker when its lease renewal finds the job no longer owned.
    """
    pass
