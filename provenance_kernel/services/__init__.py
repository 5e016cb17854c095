"""Write-side services: record CRUD and the two-sided input relation."""

from provenance_kernel.services.record_store import RecordStore
from provenance_kernel.services.relationship_service import (
    MissingBackReference,
    ReconciliationReport,
    RelationshipService,
)

__all__ = [
    "MissingBackReference",
    "ReconciliationReport",
    "RecordStore",
    "RelationshipService",
]
