"""
Error kinds raised along the submit -> poll -> fetch sequence
"""


class EnhancementError(Exception):
    """Base class for every failure the enhance endpoint reports as a 500"""


class NoFileProvided(EnhancementError):
    pass


class UploadError(EnhancementError):
    """Provider upload failed or returned no job code"""


class StatusCheckError(EnhancementError):
    """A single status call failed (transport error or malformed body)"""


class EnhancementFailedError(EnhancementError):
    """Provider reported the job as failed"""


class PollingTimeoutError(EnhancementError):
    """Attempt budget or deadline exhausted without a terminal status"""


class DownloadError(EnhancementError):
    pass


class StorageError(EnhancementError):
    """Local temp write failed"""


class EnhancementCancelledError(EnhancementError):
    pass
