"""Administrator accounts and authentication."""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.auth.passwords import hash_password, verify_password
from backoffice.models.admin import AdminCreate, AdminDB, AdminRole, AdminStatus, AdminUpdate
from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, flush_unique

logger = structlog.get_logger(__name__)


class AdminService:
    """CRUD and credential checks for the admins table."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get(self, email: str) -> AdminDB | None:
        """Look up an admin by e-mail, case-insensitively."""
        return await self.db_session.get(AdminDB, email.lower())

    async def get_or_raise(self, email: str) -> AdminDB:
        """Look up an admin by e-mail.

        Raises:
            NotFoundError: If the admin does not exist
        """
        admin = await self.get(email)
        if admin is None:
            raise NotFoundError(f"Administrateur {email} non trouvé")
        return admin

    async def authenticate(self, email: str, password: str) -> AdminDB | None:
        """Return the admin if the credentials match an active account.

        Args:
            email: Login e-mail (case-insensitive)
            password: Plaintext password

        Returns:
            AdminDB if authenticated, None otherwise
        """
        admin = await self.get(email)
        if admin is None or not verify_password(password, admin.password_hash):
            logger.info("login_failed", email=email, reason="bad_credentials")
            return None

        if not admin.is_active or admin.status != AdminStatus.ACTIVE.value:
            logger.info("login_failed", email=email, reason="inactive_account")
            return None

        logger.info("login_succeeded", email=admin.email, role=admin.role)
        return admin

    async def list_admins(self) -> list[AdminDB]:
        """All administrators, most recently added first."""
        result = await self.db_session.execute(select(AdminDB).order_by(AdminDB.created_at.desc()))
        return list(result.scalars().all())

    async def create_admin(
        self, data: AdminCreate, added_by: str | None, status: AdminStatus = AdminStatus.ACTIVE
    ) -> AdminDB:
        """Create an administrator account.

        Raises:
            ConflictError: If the e-mail is already registered
        """
        email = data.email.lower()
        if await self.get(email) is not None:
            raise ConflictError(f"Un administrateur avec l'email {email} existe déjà")

        admin = AdminDB(
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=hash_password(data.password),
            role=AdminRole(data.role).value,
            status=status.value,
            is_active=True,
            added_by=added_by,
        )
        self.db_session.add(admin)
        await flush_unique(self.db_session, f"Un administrateur avec l'email {email} existe déjà")

        logger.info("admin_created", email=email, role=admin.role, added_by=added_by)
        return admin

    async def update_admin(self, email: str, data: AdminUpdate, actor: str) -> AdminDB:
        """Update profile, role or status.

        Raises:
            NotFoundError: If the admin does not exist
            BusinessRuleError: If an admin tries to demote or deactivate themselves
        """
        admin = await self.get_or_raise(email)
        changes = data.model_dump(exclude_unset=True)

        if admin.email == actor.lower():
            if "role" in changes and changes["role"] != admin.role:
                raise BusinessRuleError("Vous ne pouvez pas modifier votre propre rôle")
            if changes.get("is_active") is False or changes.get("status") == AdminStatus.INACTIVE:
                raise BusinessRuleError("Vous ne pouvez pas désactiver votre propre compte")

        for field, value in changes.items():
            setattr(admin, field, value.value if hasattr(value, "value") else value)

        await self.db_session.flush()
        logger.info("admin_updated", email=admin.email, fields=sorted(changes), actor=actor)
        return admin

    async def deactivate_admin(self, email: str, actor: str) -> AdminDB:
        """Soft-delete an administrator; the row is kept for audit."""
        return await self.update_admin(
            email, AdminUpdate(is_active=False, status=AdminStatus.INACTIVE), actor
        )

    async def ensure_bootstrap_admin(self, email: str, password: str) -> AdminDB | None:
        """Create a super administrator when the table is empty.

        Returns:
            The created admin, or None when admins already exist
        """
        existing = await self.db_session.execute(select(AdminDB.email).limit(1))
        if existing.first() is not None:
            return None

        return await self.create_admin(
            AdminCreate(
                email=email,
                first_name="Admin",
                last_name="User",
                password=password,
                role=AdminRole.SUPER_ADMIN,
            ),
            added_by=None,
        )
