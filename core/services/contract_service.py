"""
Lease contract service.

Contracts are drafted from a tenant's current rent terms and signed twice:
first by the landlord in the dashboard, then by the tenant through a public
link carrying the contract's signing token.

    DRAFT --landlord signs--> PENDING_TENANT --tenant signs--> SIGNED

Signing links expire. The landlord's signature restarts the clock so the
tenant always gets the full lifetime.
"""

import logging
from datetime import timedelta
from uuid import UUID

from clients.storage_client import StorageClient, decode_data_url, signature_key
from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import BillingConfig
from core.exceptions import BusinessRuleError, ForbiddenError, LinkExpiredError, NotFoundError
from core.models import (
    ContractCreate, ContractStatus, ContractUpdate, LeaseContract, PublicContractView,
)
from core.numbering import CONTRACT_PREFIX, contract_number, signing_token, signing_token_expiry, with_unique_number
from core.stores import Stores
from utils.timezone import now_utc, to_local

logger = logging.getLogger(__name__)

LANDLORD = "landlord"
TENANT = "tenant"


class ContractService:
    """Service for lease contract operations."""

    def __init__(
        self,
        stores: Stores,
        audit: AuditLogger,
        storage: StorageClient,
        config: BillingConfig | None = None,
    ):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.storage = storage
        self.config = config or BillingConfig()

    def create(self, owner_id: UUID, data: ContractCreate) -> LeaseContract:
        """
        Draft a contract from the tenant's rent terms.

        A tenant without contract dates gets a contract starting today and
        running one year.

        Raises:
            NotFoundError: Tenant missing
            ForbiddenError: Tenant belongs to another owner
        """
        tenant = self.stores.tenants.get(data.tenant_id)
        unit = self.stores.units.get(tenant.unit_id) if tenant else None
        project = self.stores.projects.get(unit.project_id) if unit else None
        if project is None:
            raise NotFoundError("Tenant", data.tenant_id)
        if project.owner_id != owner_id:
            raise ForbiddenError("Tenant belongs to another owner")

        now = now_utc()
        start = tenant.contract_start or to_local(now, self.config.timezone).date()
        end = tenant.contract_end or start + timedelta(days=365)
        year = to_local(now, self.config.timezone).year

        base = {
            "project_id": project.id,
            "unit_id": unit.id,
            "tenant_id": tenant.id,
            "title": data.title,
            "title_th": data.title_th,
            "base_rent_satang": tenant.base_rent_satang,
            "common_fee_satang": tenant.common_fee_satang,
            "deposit_satang": tenant.deposit_satang,
            "contract_start": start,
            "contract_end": end,
            "clauses": data.clauses,
            "status": ContractStatus.DRAFT,
            "signing_token": signing_token(),
            "token_expires_at": signing_token_expiry(self.config.signing_token_days, now),
        }

        # Sequence numbers come from a count, so a concurrent create can
        # collide. Each retry recounts.
        contract = with_unique_number(
            lambda: contract_number(
                year, self.stores.contracts.count_with_prefix(f"{CONTRACT_PREFIX}{year}"),
            ),
            lambda number: self.stores.contracts.insert({**base, "contract_no": number}),
            self.config.document_number_attempts,
        )

        self.audit.log_change(
            "lease_contract", contract.id, AuditAction.CREATE,
            {"created": {
                "contract_no": contract.contract_no,
                "tenant_id": str(tenant.id),
                "base_rent_satang": contract.base_rent_satang,
            }},
            user_id=owner_id,
        )
        logger.info(f"Drafted contract {contract.contract_no} for tenant {tenant.id}")
        return contract

    def get(self, owner_id: UUID, contract_id: UUID) -> LeaseContract:
        contract, _ = self.gate.contract(owner_id, contract_id)
        return contract

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: ContractStatus | None = None,
    ) -> list[LeaseContract]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)
        return self.stores.contracts.list_for_projects(project_ids, status=status)

    def update(self, owner_id: UUID, contract_id: UUID, data: ContractUpdate) -> LeaseContract:
        """
        Raises:
            BusinessRuleError: Contract is no longer a draft
        """
        current, _ = self.gate.contract(owner_id, contract_id)
        if current.status != ContractStatus.DRAFT:
            raise BusinessRuleError("Can only edit draft contracts")

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return current

        updated = self.stores.contracts.update(contract_id, updates)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("lease_contract", contract_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, contract_id: UUID) -> None:
        """
        Raises:
            BusinessRuleError: Contract is signed
        """
        current, _ = self.gate.contract(owner_id, contract_id)
        if current.status == ContractStatus.SIGNED:
            raise BusinessRuleError("Cannot delete signed contracts")

        self.stores.contracts.delete(contract_id)
        self.audit.log_change(
            "lease_contract", contract_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json", exclude={"signing_token"})},
            user_id=owner_id,
        )

    def sign_as_landlord(self, owner_id: UUID, contract_id: UUID, signature: str) -> LeaseContract:
        """
        Store the landlord's signature and open the contract to the tenant.

        Raises:
            BusinessRuleError: Contract is not a draft, or the signature is
                not an image data URL
        """
        current, _ = self.gate.contract(owner_id, contract_id)
        if current.status != ContractStatus.DRAFT:
            raise BusinessRuleError("Contract already signed by landlord")

        image = decode_data_url(signature, self.config.max_upload_bytes)
        key = self.storage.put(signature_key(contract_id, LANDLORD), image.data, "image/png")

        now = now_utc()
        updated = self.stores.contracts.update(contract_id, {
            "landlord_signature": key,
            "landlord_signed_at": now,
            "status": ContractStatus.PENDING_TENANT,
            "token_expires_at": signing_token_expiry(self.config.signing_token_days, now),
        })

        self.audit.log_change(
            "lease_contract", contract_id, AuditAction.UPDATE,
            {"status": {"old": current.status.value, "new": ContractStatus.PENDING_TENANT.value}},
            user_id=owner_id,
        )
        logger.info(f"Landlord signed contract {current.contract_no}")
        return updated

    # =========================================================================
    # Public signing link
    # =========================================================================

    def _by_token(self, token: str) -> LeaseContract:
        """
        Resolve a signing link that is still open for the tenant.

        Raises:
            NotFoundError: Unknown token
            LinkExpiredError: Token lifetime is over
            BusinessRuleError: Already signed, or not signed by the landlord yet
        """
        contract = self.stores.contracts.get_by_token(token)
        if contract is None:
            raise NotFoundError("Contract", message="Invalid signing link")

        if contract.token_expires_at is not None and now_utc() > contract.token_expires_at:
            raise LinkExpiredError("Signing link has expired")
        if contract.tenant_signature:
            raise BusinessRuleError("Contract already signed")
        if contract.status != ContractStatus.PENDING_TENANT:
            raise BusinessRuleError("Contract not ready for signing")
        return contract

    def public_view(self, token: str) -> PublicContractView:
        contract = self._by_token(token)
        project = self.stores.projects.get(contract.project_id)
        unit = self.stores.units.get(contract.unit_id)
        tenant = self.stores.tenants.get(contract.tenant_id)

        logo_url = None
        if project.logo_key:
            logo_url = self.storage.presigned_url(project.logo_key, self.config.presigned_url_expiry_seconds)

        return PublicContractView(
            contract_no=contract.contract_no,
            title=contract.title,
            title_th=contract.title_th,
            base_rent_satang=contract.base_rent_satang,
            common_fee_satang=contract.common_fee_satang,
            deposit_satang=contract.deposit_satang,
            contract_start=contract.contract_start,
            contract_end=contract.contract_end,
            clauses=contract.clauses,
            project_name=project.name,
            project_name_th=project.name_th,
            company_name=project.display_company("en"),
            company_address=project.company_address,
            logo_url=logo_url,
            unit_number=unit.unit_number if unit else "",
            tenant_name=tenant.name if tenant else "",
            tenant_name_th=tenant.name_th if tenant else None,
            landlord_signed_at=contract.landlord_signed_at,
        )

    def sign_as_tenant(self, token: str, signature: str) -> LeaseContract:
        contract = self._by_token(token)

        image = decode_data_url(signature, self.config.max_upload_bytes)
        key = self.storage.put(signature_key(contract.id, TENANT), image.data, "image/png")

        updated = self.stores.contracts.update(contract.id, {
            "tenant_signature": key,
            "tenant_signed_at": now_utc(),
            "status": ContractStatus.SIGNED,
        })

        self.audit.log_change(
            "lease_contract", contract.id, AuditAction.UPDATE,
            {"status": {"old": contract.status.value, "new": ContractStatus.SIGNED.value}},
        )
        logger.info(f"Tenant signed contract {contract.contract_no}")
        return updated
