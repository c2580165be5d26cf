"""
Demo Data Seeder - Creates the demo account and the dataset the take shows.

Every row is looked up by its natural key before it is inserted, so
re-running the seeder against a seeded project changes nothing.
The account, client and warehouse are required; any other row that
fails is logged and skipped.
"""

import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
import structlog

from ..core.config import DemoConfig
from ..core.errors import PrerequisiteError, SeedingError
from .dataset import CLIENT, ETL_PROCESSES, KPIS, REPORT, SOURCES, WAREHOUSE
from .supabase import SupabaseAdmin

logger = structlog.get_logger()

URL_ENV = "SUPABASE_URL"
KEY_ENV = "SUPABASE_SERVICE_ROLE_KEY"


def generate_id(prefix: str) -> str:
    """Short prefixed ID in the app's `<prefix>-xxxxxxxx` format."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@dataclass
class SeedResult:
    """What a seeding run created, found, or could not create."""
    user_id: Optional[str] = None
    client_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    report_id: Optional[str] = None
    created: list[str] = field(default_factory=list)
    existing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


ClientFactory = Callable[[str, str, float], SupabaseAdmin]


class DemoDataSeeder:
    """
    Seeds the demo account and the "Acme Marketing Co." dataset.

    Order:
    - Demo user and profile
    - Client
    - Data sources, warehouse, KPIs, ETL processes, report
    - Lineage (sources -> warehouse -> report)
    - User-client assignment
    """

    def __init__(
        self,
        config: DemoConfig,
        environ: Optional[dict[str, str]] = None,
        client_factory: ClientFactory = SupabaseAdmin,
    ):
        self.config = config
        self.settings = config.seed
        self._environ = environ if environ is not None else os.environ
        self._client_factory = client_factory

    def credentials(self) -> tuple[str, str]:
        """
        Supabase URL and service role key from the environment.

        Raises:
            PrerequisiteError: Either variable is unset
        """
        missing = [name for name in (URL_ENV, KEY_ENV) if not self._environ.get(name)]
        if missing:
            logger.error("supabase_credentials_missing", missing=missing, hint="run `supabase status`")
            raise PrerequisiteError([f"Missing environment variable: {name}" for name in missing])
        return self._environ[URL_ENV], self._environ[KEY_ENV]

    async def seed(self) -> SeedResult:
        """
        Create everything the recording needs.

        Raises:
            PrerequisiteError: Supabase credentials missing
            SeedingError: The user, client or warehouse could not be created
        """
        url, key = self.credentials()
        logger.info("seeding_started", supabase_url=url)

        result = SeedResult()
        async with self._client_factory(url, key, self.settings.request_timeout_seconds) as db:
            user = await self.ensure_user(db, result)
            result.user_id = user["id"]

            client = await self.ensure_row(
                db, result, "clients", CLIENT, {"name": CLIENT["name"]},
                prefix="c", label=CLIENT["name"], required=True,
            )
            client_id = result.client_id = client["id"]

            for source in SOURCES:
                await self.ensure_row(
                    db, result, "data_sources", {**source, "client_id": client_id},
                    {"client_id": client_id, "name": source["name"]}, prefix="s",
                )

            warehouse = await self.ensure_row(
                db, result, "data_warehouses", {"client_id": client_id, **WAREHOUSE},
                {"client_id": client_id, "name": WAREHOUSE["name"]},
                prefix="wh", required=True,
            )
            warehouse_id = result.warehouse_id = warehouse["id"]

            for kpi in KPIS:
                await self.ensure_row(
                    db, result, "kpis", {**kpi, "client_id": client_id},
                    {"client_id": client_id, "name": kpi["name"]}, prefix="k",
                )

            for etl in ETL_PROCESSES:
                await self.ensure_row(
                    db, result, "etl_processes", {**etl, "client_id": client_id},
                    {"client_id": client_id, "name": etl["name"]}, prefix="e",
                )

            report = await self.ensure_row(
                db, result, "reports",
                {"client_id": client_id, "warehouse_id": warehouse_id, **REPORT},
                {"client_id": client_id, "name": REPORT["name"]}, prefix="r",
            )
            result.report_id = report["id"] if report else None

            sources = await db.select("data_sources", {"client_id": client_id}, columns="id,name")
            if sources:
                await self.ensure_lineage(db, result, client_id, sources, warehouse_id, result.report_id)

            assignment = {"user_id": result.user_id, "client_id": client_id}
            await self.ensure_row(
                db, result, "user_client_assignments", {**assignment, "role": "admin"},
                assignment, label="demo user -> client",
            )

        logger.info(
            "seeding_complete",
            email=self.config.credentials.email,
            client=CLIENT["name"],
            created=len(result.created),
            existing=len(result.existing),
            failed=len(result.failed),
            next_step="demo-record",
        )
        return result

    async def ensure_user(self, db: SupabaseAdmin, result: SeedResult) -> dict[str, Any]:
        """Find or create the demo login, then make sure it has an admin profile."""
        creds = self.config.credentials
        label = f"user:{creds.email}"
        display_name = self.settings.display_name

        users = await db.list_users(per_page=self.settings.user_page_size)
        user = next((u for u in users if u.get("email") == creds.email), None)

        if user:
            result.existing.append(label)
            logger.info("seed_row_exists", table="auth.users", row=creds.email)
        else:
            user = await db.create_user(
                creds.email, creds.password, {"display_name": display_name}
            )
            result.created.append(label)
            logger.info("seed_row_created", table="auth.users", row=creds.email)

        try:
            await db.upsert("user_profiles", {
                "id": user["id"],
                "display_name": display_name,
                "is_admin": True,
            })
        except SeedingError as e:
            logger.warning("user_profile_failed", user_id=user["id"], error=e.message)

        return user

    async def ensure_row(
        self,
        db: SupabaseAdmin,
        result: SeedResult,
        table: str,
        row: dict[str, Any],
        match: dict[str, Any],
        prefix: Optional[str] = None,
        label: Optional[str] = None,
        required: bool = False,
    ) -> Optional[dict[str, Any]]:
        """
        Insert a row unless one matching `match` already exists.

        Args:
            row: Column values for a new row
            match: Equality filters identifying an existing row
            prefix: ID prefix; rows without a prefix get no explicit ID
            label: Name used in logs and the result (defaults to row["name"])
            required: Raise on failure instead of logging and skipping

        Returns:
            The existing or created row, or None when an optional row failed
        """
        label = f"{table}:{label or row.get('name')}"
        try:
            rows = await db.select(table, match)
            if rows:
                result.existing.append(label)
                logger.info("seed_row_exists", table=table, row=label)
                return rows[0]

            new_row = {"id": generate_id(prefix), **row} if prefix else dict(row)
            created = await db.insert(table, new_row)
        except SeedingError as e:
            if required:
                raise
            result.failed.append(label)
            logger.error("seed_row_failed", table=table, row=label, error=e.message)
            return None

        result.created.append(label)
        logger.info("seed_row_created", table=table, row=label)
        return created

    async def ensure_lineage(
        self,
        db: SupabaseAdmin,
        result: SeedResult,
        client_id: str,
        sources: list[dict[str, Any]],
        warehouse_id: str,
        report_id: Optional[str],
    ) -> None:
        """Link every source to the warehouse, and the warehouse to the report."""
        links = [
            (f"{source['name']} -> warehouse", "data_source", source["id"],
             "warehouse", warehouse_id, "ETL import")
            for source in sources
        ]
        if report_id:
            links.append(
                ("warehouse -> report", "warehouse", warehouse_id,
                 "report", report_id, "Visualization")
            )

        for label, source_type, source_id, destination_type, destination_id, transformation in links:
            match = {
                "client_id": client_id,
                "source_type": source_type,
                "source_id": source_id,
                "destination_type": destination_type,
                "destination_id": destination_id,
            }
            await self.ensure_row(
                db, result, "data_lineage", {**match, "transformation": transformation},
                match, prefix="l", label=label,
            )
