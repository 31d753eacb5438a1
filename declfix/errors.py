# FILE: declfix/errors.py
"""Exception hierarchy for declfix.

Rewrite failures are raised where they happen (read, backup, write) and
caught once at the top: the pipeline turns them into a FAILED report and the
CLI into a non-zero exit.
"""


class DeclfixError(Exception):
    """Base class for declfix errors."""


class SourceNotFoundError(DeclfixError):
    """Input path does not exist or does not resolve to a regular file."""

    def __init__(self, path: str, message: str = ""):
        self.path = path
        super().__init__(message or f"File not found: {path}")


class SourceReadError(DeclfixError):
    """I/O error while reading the input file."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Error reading file {path}: {cause}")


class WriteFailureError(DeclfixError):
    """Base for failed writes (backup or rewritten target)."""

    def __init__(self, path: str, cause: Exception, message: str = ""):
        self.path = path
        self.cause = cause
        super().__init__(message or f"Error writing file {path}: {cause}")


class BackupWriteError(WriteFailureError):
    """Backup could not be written. The source file was not touched."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(
            path,
            cause,
            f"Error writing backup {path}: {cause} (source file left unchanged)",
        )


class TargetWriteError(WriteFailureError):
    """Rewritten content could not be written after the backup succeeded."""

    def __init__(self, path: str, cause: Exception, backup_path: str = ""):
        self.backup_path = backup_path
        hint = f" (original is recoverable from {backup_path})" if backup_path else ""
        super().__init__(path, cause, f"Error writing file {path}: {cause}{hint}")


class KVStoreError(DeclfixError):
    """HTTP or transport failure talking to the KV config store."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)
