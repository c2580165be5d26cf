"""
Supabase Admin - Minimal async client for the auth admin and REST APIs.

Authenticates with the service role key, which bypasses row level
security. Only the calls demo seeding needs are exposed.
"""

from typing import Any, Optional
import httpx
import structlog

from ..core.errors import SeedingError

logger = structlog.get_logger()


class SupabaseAdmin:
    """
    Service-role client for one Supabase project.

    Usage:
        async with SupabaseAdmin(url, key) as db:
            rows = await db.select("clients", {"name": "Acme Marketing Co."})
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Project URL (SUPABASE_URL)
            service_role_key: Service role key (SUPABASE_SERVICE_ROLE_KEY)
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        self._base_url = url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SupabaseAdmin":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    # -- auth admin ---------------------------------------------------------

    async def list_users(self, per_page: int = 1000) -> list[dict[str, Any]]:
        data = await self._request(
            "GET", "/auth/v1/admin/users", params={"page": 1, "per_page": per_page}
        )
        if isinstance(data, dict):
            return data.get("users") or []
        return []

    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Create a confirmed user that can sign in immediately."""
        return await self._request(
            "POST",
            "/auth/v1/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": metadata or {},
            },
        )

    # -- rest ---------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Rows of a table matching every equality filter."""
        params = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        return await self._request("GET", f"/rest/v1/{table}", table=table, params=params) or []

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored."""
        rows = await self._request(
            "POST",
            f"/rest/v1/{table}",
            table=table,
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else row

    async def upsert(self, table: str, row: dict[str, Any]) -> None:
        """Insert one row, merging into an existing row with the same key."""
        await self._request(
            "POST",
            f"/rest/v1/{table}",
            table=table,
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        table: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise SeedingError(f"{method} {path} failed: {e}", table=table) from e

        if response.is_error:
            message = error_message(response)
            logger.debug(
                "supabase_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise SeedingError(
                f"{method} {path} returned {response.status_code}: {message}",
                table=table,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()


def error_message(response: httpx.Response) -> str:
    """Human-readable error from a PostgREST or GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]

    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)
