"""
Typed Exception Hierarchy for the Provenance Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the kernel (a transaction layer, an RPC binding, the CLI) must be
able to tell "the lot does not exist" apart from "the ledger is down" without
parsing message strings. Every error therefore:

  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA (record_id, key, reason, ...)

Example:
    try:
        contract.read(ctx, "LOTE-001")
    except RecordNotFoundError as e:
        api_response(code=e.code, record_id=e.record_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ProvenanceKernelError:

    ProvenanceKernelError (base)
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |   +-- RecordAlreadyExistsError
    |   +-- CorruptRecordError
    |   +-- MissingFieldError
    |
    +-- BackendError
    |   +-- BackendUnavailableError
    |   +-- ConcurrentWriteError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Record          | RECORD_NOT_FOUND            | Mutation/read/history of a missing id
                | RECORD_ALREADY_EXISTS       | create on an id that already exists
                | CORRUPT_RECORD              | Stored bytes do not decode to a Record
                | MISSING_FIELD               | Required input absent or empty id
----------------|-----------------------------|-----------------------------------------
Backend         | BACKEND_UNAVAILABLE         | Ledger backend could not serve a call
                | CONCURRENT_WRITE            | Another writer took the same key version
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Attempt to edit/remove a stored version

===============================================================================
HANDLING PATTERNS
===============================================================================

All kernel errors are terminal for the invoking call. The kernel never
retries; the external transaction layer decides whether to re-run the whole
invocation. BackendUnavailableError is raised by the backend adapter and
passes through the kernel untouched.

A crash between the two writes of attach_input is NOT reported as an error
kind. It leaves a forward reference without its back-reference, which the
explicit reconciliation pass (RelationshipService.reconcile_back_references)
can repair.

===============================================================================
"""


class ProvenanceKernelError(Exception):
    """
    Base exception for all provenance kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PROVENANCE_KERNEL_ERROR"


# Record-related exceptions


class RecordError(ProvenanceKernelError):
    """Base exception for record-related errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """No live record exists under the given id."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")


class RecordAlreadyExistsError(RecordError):
    """A live record already exists under the given id."""

    code: str = "RECORD_ALREADY_EXISTS"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record already exists: {record_id}")


class CorruptRecordError(RecordError):
    """
    Stored bytes could not be decoded into a Record.

    Raised on read and while walking history. The stored version is left
    as-is; the ledger is append-only.
    """

    code: str = "CORRUPT_RECORD"

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Corrupt record {record_id}: {reason}")


class MissingFieldError(RecordError):
    """A required operation input is absent."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")


# Backend-related exceptions


class BackendError(ProvenanceKernelError):
    """Base exception for ledger backend errors."""

    code: str = "BACKEND_ERROR"


class BackendUnavailableError(BackendError):
    """The ledger backend could not complete a get/put/delete/history call."""

    code: str = "BACKEND_UNAVAILABLE"

    def __init__(self, operation: str, key: str, reason: str = ""):
        self.operation = operation
        self.key = key
        self.reason = reason
        message = f"Backend unavailable during {operation} of {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConcurrentWriteError(BackendError):
    """
    Another transaction stored the same version of a key first.

    The ledger assigns versions per key; two writers racing on one key
    collide on (key, version).  The losing transaction is rolled back by
    its caller and may re-run the whole invocation.
    """

    code: str = "CONCURRENT_WRITE"

    def __init__(self, key: str, version: int):
        self.key = key
        self.version = version
        super().__init__(f"Concurrent write to {key}: version {version} already stored")


# Immutability-related exceptions


class ImmutabilityError(ProvenanceKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete a stored ledger version.

    Versions are append-only; a delete is itself recorded as a new
    tombstone version.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
