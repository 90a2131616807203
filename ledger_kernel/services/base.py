"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services inherit
    from BaseService, receiving a SQLAlchemy ``Session`` that they use
    via ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Business-event modules in ``ledger_modules`` extend it as well.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back the caller's work.  The
      only rollback a service performs is of its own SAVEPOINT.
    - Tenant scoping: every operation is keyed by an explicit tenant id;
      a missing tenant is an operational error, not an empty result.

Failure modes:
    - MissingTenantContextError when an operation is invoked without a
      tenant.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.exceptions import MissingTenantContextError

ModelType = TypeVar("ModelType", bound=Base)


def require_tenant(tenant_id: UUID | None, operation: str) -> UUID:
    """
    Return tenant_id, or fail when the caller supplied none.

    Raises:
        MissingTenantContextError: If tenant_id is None.
    """
    if tenant_id is None:
        raise MissingTenantContextError(operation)
    return tenant_id


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
