"""
TenantService -- tenant registry and TenantContext construction.

Responsibility:
    Creates tenants with a validated base currency and builds the
    TenantContext every other operation takes.

Architecture position:
    Kernel > Services.  The outer layer calls context_for() once per
    request with the actor handed over by the identity provider.

Failure modes:
    - InvalidCurrencyError on an unknown base currency.
    - TenantNotFoundError from context_for() on an unknown tenant.
    - MissingTenantContextError when no tenant id is supplied.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.exceptions import TenantNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.tenant import Tenant
from ledger_kernel.services.base import BaseService, require_tenant

logger = get_logger("services.tenant")


class TenantService(BaseService[Tenant]):
    """Service for tenant creation and lookup."""

    def __init__(self, session: Session):
        super().__init__(session)

    def create_tenant(self, name: str, base_currency: str, actor: str) -> TenantContext:
        """
        Register a tenant and return the acting context for it.

        Raises:
            InvalidCurrencyError: base_currency is not a known ISO 4217 code.
        """
        currency = CurrencyRegistry.validate(base_currency)
        tenant = Tenant(name=name, base_currency=currency, created_by=actor)
        self.session.add(tenant)
        self.session.flush()

        logger.info(
            "tenant_created",
            extra={"tenant_id": str(tenant.id), "base_currency": currency},
        )
        return TenantContext(tenant_id=tenant.id, actor=actor, base_currency=currency)

    def get_tenant(self, tenant_id: UUID | None) -> Tenant:
        """
        Raises:
            MissingTenantContextError: tenant_id is None.
            TenantNotFoundError: Unknown tenant.
        """
        tenant_id = require_tenant(tenant_id, "get_tenant")
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(str(tenant_id))
        return tenant

    def context_for(self, tenant_id: UUID | None, actor: str) -> TenantContext:
        tenant = self.get_tenant(tenant_id)
        return TenantContext(
            tenant_id=tenant.id,
            actor=actor,
            base_currency=tenant.base_currency,
        )
