class PunchError(Exception):
    """Fatal error: reported at the top level, process exits non-zero."""


class StorageFailure(PunchError):
    pass


class HomeDirectoryUnresolvable(PunchError):
    pass
