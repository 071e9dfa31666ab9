"""Repository layer for all database query operations.

Provides typed operations backed by a Database instance. All queries use
parameterized SQL (no string interpolation). JSON columns are serialized with
json.dumps() and deserialized with json.loads(). Emails are stored trimmed
and lowercased; callers may pass them in any case.
"""

import datetime
import json
import logging
import sqlite3
import uuid
from typing import Any

from WebGL_Preflight.data.database import Database
from WebGL_Preflight.models.enums import HostTarget
from WebGL_Preflight.models.launch import HostRules, PlatformRules
from WebGL_Preflight.models.records import (
    Account,
    Build,
    BuildSummary,
    FixPackRecord,
    LaunchProfile,
    Project,
    ProjectHistory,
)

logger = logging.getLogger(__name__)

_BUILD_COLUMNS = (
    "id, project_id, owner_email, status, version_label, created_at, scanned_at, "
    "quick_score, brotli_present, gzip_present, scan_result"
)
_PROFILE_COLUMNS = (
    "build_id, target_platform, target_host, monetization_intent, distribution_strategy, "
    "readiness_score, platform_fit_score, host_compatibility_score, recommendations, updated_at"
)
_PLATFORM_COLUMNS = (
    "slug, name, initial_download_max_mb, total_build_max_mb, max_file_count, "
    "max_single_file_mb, requires_compressed_build, accepted_compression, "
    "requires_sdk_injection, sdk_type, notes"
)
_HOST_COLUMNS = (
    "slug, name, supports_brotli, supports_gzip, requires_manual_header_config, "
    "default_spa_fallback, edge_network, notes"
)


def normalize_email(email: str) -> str:
    """Canonical form used as the account key."""
    return email.strip().lower()


def new_id() -> str:
    """Opaque identifier for projects and builds."""
    return uuid.uuid4().hex


class Repository:
    """Query interface for the WebGL Preflight persistence layer.

    All methods operate through the provided Database instance's connection.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def upsert_account(self, email: str) -> Account:
        """Return the account for ``email``, creating it on first use."""
        conn = self._db.connection
        await conn.execute(
            "INSERT OR IGNORE INTO accounts (email, created_at) VALUES (?, ?)",
            (normalize_email(email), _now()),
        )
        await conn.commit()
        account = await self.get_account(email)
        if account is None:
            msg = f"Account upsert did not persist for {email!r}."
            raise RuntimeError(msg)
        return account

    async def get_account(self, email: str) -> Account | None:
        conn = self._db.connection
        cursor = await conn.execute(
            "SELECT email, fix_pack_uses, subscription_active, created_at "
            "FROM accounts WHERE email = ?",
            (normalize_email(email),),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_account(row)

    async def claim_free_fix_pack(self, email: str, limit: int) -> Account | None:
        """Count one fix pack against the free allowance if any is left.

        The check and the increment are one conditional UPDATE, so concurrent
        claims can never push ``fix_pack_uses`` past ``limit``.

        Returns:
            The updated account, or None when the allowance is already used up.

        Raises:
            LookupError: No account exists for ``email``.
        """
        conn = self._db.connection
        cursor = await conn.execute(
            "UPDATE accounts SET fix_pack_uses = fix_pack_uses + 1 "
            "WHERE email = ? AND fix_pack_uses < ?",
            (normalize_email(email), limit),
        )
        claimed = cursor.rowcount == 1
        await conn.commit()
        account = await self.get_account(email)
        if account is None:
            msg = f"No account for {email!r}."
            raise LookupError(msg)
        return account if claimed else None

    async def set_subscription(self, email: str, *, active: bool) -> Account:
        """Flip the subscription flag (no payment flow lives here)."""
        await self.upsert_account(email)
        conn = self._db.connection
        await conn.execute(
            "UPDATE accounts SET subscription_active = ? WHERE email = ?",
            (int(active), normalize_email(email)),
        )
        await conn.commit()
        account = await self.get_account(email)
        if account is None:
            msg = f"No account for {email!r}."
            raise LookupError(msg)
        return account

    # ------------------------------------------------------------------
    # Projects and builds
    # ------------------------------------------------------------------

    async def get_or_create_project(self, owner_email: str, name: str) -> Project:
        """Return the owner's project called ``name``, creating it if needed.

        The project's ``updated_at`` is bumped so that history lists the most
        recently used project first.
        """
        conn = self._db.connection
        owner = normalize_email(owner_email)
        now = _now()
        await conn.execute(
            "INSERT OR IGNORE INTO projects (id, owner_email, name, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (new_id(), owner, name, now, now),
        )
        await conn.execute(
            "UPDATE projects SET updated_at = ? WHERE owner_email = ? AND name = ?",
            (now, owner, name),
        )
        await conn.commit()
        cursor = await conn.execute(
            "SELECT id, owner_email, name, created_at, updated_at "
            "FROM projects WHERE owner_email = ? AND name = ?",
            (owner, name),
        )
        row = await cursor.fetchone()
        if row is None:
            msg = f"Project upsert did not persist for {owner!r}/{name!r}."
            raise RuntimeError(msg)
        return _row_to_project(row)

    async def save_build(self, build: Build) -> None:
        """Persist a Build and its scan JSON."""
        conn = self._db.connection
        await conn.execute(
            f"INSERT INTO builds ({_BUILD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                build.id,
                build.project_id,
                normalize_email(build.owner_email),
                build.status,
                build.version_label,
                build.created_at.isoformat(),
                build.scanned_at.isoformat() if build.scanned_at else None,
                build.quick_score,
                _bool_to_db(build.brotli_present),
                _bool_to_db(build.gzip_present),
                json.dumps(build.scan_result) if build.scan_result is not None else None,
            ),
        )
        await conn.commit()
        logger.info("Saved build %s for project %s", build.id, build.project_id)

    async def get_build(self, build_id: str) -> Build | None:
        """Return a Build by ID regardless of owner, or None."""
        conn = self._db.connection
        cursor = await conn.execute(
            f"SELECT {_BUILD_COLUMNS} FROM builds WHERE id = ?",
            (build_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_build(row)

    async def get_build_for_owner(self, build_id: str, owner_email: str) -> Build | None:
        """Return a Build only if it belongs to ``owner_email``."""
        conn = self._db.connection
        cursor = await conn.execute(
            f"SELECT {_BUILD_COLUMNS} FROM builds WHERE id = ? AND owner_email = ?",
            (build_id, normalize_email(owner_email)),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_build(row)

    async def get_project(self, project_id: str) -> Project | None:
        conn = self._db.connection
        cursor = await conn.execute(
            "SELECT id, owner_email, name, created_at, updated_at FROM projects WHERE id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_project(row)

    async def list_history(self, owner_email: str) -> list[ProjectHistory]:
        """Return the owner's projects (most recently updated first) with their builds.

        Builds are newest first and carry their launch profile when one exists.
        """
        conn = self._db.connection
        owner = normalize_email(owner_email)
        cursor = await conn.execute(
            "SELECT id, name FROM projects WHERE owner_email = ? ORDER BY updated_at DESC, name",
            (owner,),
        )
        projects = await cursor.fetchall()

        history: list[ProjectHistory] = []
        for project_id, name in projects:
            cursor = await conn.execute(
                "SELECT id, created_at, scanned_at, quick_score, brotli_present, gzip_present, "
                "status, version_label FROM builds WHERE project_id = ? "
                "ORDER BY created_at DESC, id",
                (project_id,),
            )
            rows = await cursor.fetchall()
            builds = [
                BuildSummary(
                    id=row[0],
                    created_at=datetime.datetime.fromisoformat(row[1]),
                    scanned_at=_parse_optional_datetime(row[2]),
                    quick_score=row[3],
                    brotli_present=_bool_from_db(row[4]),
                    gzip_present=_bool_from_db(row[5]),
                    status=row[6],
                    version_label=row[7],
                    launch=await self.get_launch_profile(row[0]),
                )
                for row in rows
            ]
            history.append(ProjectHistory(id=project_id, name=name, builds=builds))
        return history

    # ------------------------------------------------------------------
    # Launch profiles
    # ------------------------------------------------------------------

    async def save_launch_profile(self, profile: LaunchProfile) -> None:
        """Create or replace the launch profile for a build."""
        conn = self._db.connection
        await conn.execute(
            f"INSERT OR REPLACE INTO launch_profiles ({_PROFILE_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                profile.build_id,
                profile.target_platform,
                profile.target_host,
                profile.monetization_intent,
                profile.distribution_strategy,
                profile.readiness_score,
                profile.platform_fit_score,
                profile.host_compatibility_score,
                json.dumps(profile.recommendations) if profile.recommendations is not None else None,
                profile.updated_at.isoformat(),
            ),
        )
        await conn.commit()

    async def get_launch_profile(self, build_id: str) -> LaunchProfile | None:
        conn = self._db.connection
        cursor = await conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM launch_profiles WHERE build_id = ?",
            (build_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_launch_profile(row)

    # ------------------------------------------------------------------
    # Reference data: platforms and hosts
    # ------------------------------------------------------------------

    async def list_platforms(self) -> list[PlatformRules]:
        """All platforms ordered by display name."""
        conn = self._db.connection
        cursor = await conn.execute(f"SELECT {_PLATFORM_COLUMNS} FROM platforms ORDER BY name")
        rows = await cursor.fetchall()
        return [_row_to_platform(row) for row in rows]

    async def get_platform(self, slug: str) -> PlatformRules | None:
        conn = self._db.connection
        cursor = await conn.execute(
            f"SELECT {_PLATFORM_COLUMNS} FROM platforms WHERE slug = ?",
            (slug,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_platform(row)

    async def upsert_platform(self, platform: PlatformRules) -> None:
        conn = self._db.connection
        await conn.execute(
            f"INSERT OR REPLACE INTO platforms ({_PLATFORM_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                platform.slug,
                platform.name,
                platform.initial_download_max_mb,
                platform.total_build_max_mb,
                platform.max_file_count,
                platform.max_single_file_mb,
                int(platform.requires_compressed_build),
                json.dumps(platform.accepted_compression),
                int(platform.requires_sdk_injection),
                platform.sdk_type,
                platform.notes,
            ),
        )
        await conn.commit()

    async def list_hosts(self) -> list[HostRules]:
        """All hosts ordered by display name."""
        conn = self._db.connection
        cursor = await conn.execute(f"SELECT {_HOST_COLUMNS} FROM hosts ORDER BY name")
        rows = await cursor.fetchall()
        return [_row_to_host(row) for row in rows]

    async def get_host(self, slug: str) -> HostRules | None:
        conn = self._db.connection
        cursor = await conn.execute(
            f"SELECT {_HOST_COLUMNS} FROM hosts WHERE slug = ?",
            (slug,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_host(row)

    async def upsert_host(self, host: HostRules) -> None:
        conn = self._db.connection
        await conn.execute(
            f"INSERT OR REPLACE INTO hosts ({_HOST_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                host.slug,
                host.name,
                int(host.supports_brotli),
                int(host.supports_gzip),
                int(host.requires_manual_header_config),
                int(host.default_spa_fallback),
                host.edge_network,
                host.notes,
            ),
        )
        await conn.commit()

    # ------------------------------------------------------------------
    # Fix packs
    # ------------------------------------------------------------------

    async def save_fix_pack(self, build_id: str, host: HostTarget) -> FixPackRecord:
        """Record that a fix pack was generated for a build."""
        conn = self._db.connection
        created_at = datetime.datetime.now(datetime.UTC)
        cursor = await conn.execute(
            "INSERT INTO fix_packs (build_id, host, created_at) VALUES (?, ?, ?)",
            (build_id, host.value, created_at.isoformat()),
        )
        await conn.commit()
        fix_pack_id = cursor.lastrowid
        if fix_pack_id is None:
            msg = "Failed to retrieve lastrowid after fix pack insert."
            raise RuntimeError(msg)
        return FixPackRecord(id=fix_pack_id, build_id=build_id, host=host, created_at=created_at)

    async def list_fix_packs(self, build_id: str) -> list[FixPackRecord]:
        """Fix packs generated for a build, oldest first."""
        conn = self._db.connection
        cursor = await conn.execute(
            "SELECT id, build_id, host, created_at FROM fix_packs WHERE build_id = ? ORDER BY id",
            (build_id,),
        )
        rows = await cursor.fetchall()
        return [
            FixPackRecord(
                id=row[0],
                build_id=row[1],
                host=HostTarget(row[2]),
                created_at=datetime.datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _now() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


def _bool_to_db(value: bool | None) -> int | None:
    return None if value is None else int(value)


def _bool_from_db(value: int | None) -> bool | None:
    return None if value is None else bool(value)


def _parse_optional_datetime(value: str | None) -> datetime.datetime | None:
    return datetime.datetime.fromisoformat(value) if value is not None else None


def _loads_optional(value: str | None) -> Any:
    return json.loads(value) if value is not None else None


def _row_to_account(row: sqlite3.Row) -> Account:
    """Convert a database row tuple to an Account model."""
    return Account(
        email=row[0],
        fix_pack_uses=row[1],
        subscription_active=bool(row[2]),
        created_at=datetime.datetime.fromisoformat(row[3]),
    )


def _row_to_project(row: sqlite3.Row) -> Project:
    """Convert a database row tuple to a Project model."""
    return Project(
        id=row[0],
        owner_email=row[1],
        name=row[2],
        created_at=datetime.datetime.fromisoformat(row[3]),
        updated_at=datetime.datetime.fromisoformat(row[4]),
    )


def _row_to_build(row: sqlite3.Row) -> Build:
    """Convert a database row tuple to a Build model."""
    return Build(
        id=row[0],
        project_id=row[1],
        owner_email=row[2],
        status=row[3],
        version_label=row[4],
        created_at=datetime.datetime.fromisoformat(row[5]),
        scanned_at=_parse_optional_datetime(row[6]),
        quick_score=row[7],
        brotli_present=_bool_from_db(row[8]),
        gzip_present=_bool_from_db(row[9]),
        scan_result=_loads_optional(row[10]),
    )


def _row_to_launch_profile(row: sqlite3.Row) -> LaunchProfile:
    """Convert a database row tuple to a LaunchProfile model."""
    return LaunchProfile(
        build_id=row[0],
        target_platform=row[1],
        target_host=row[2],
        monetization_intent=row[3],
        distribution_strategy=row[4],
        readiness_score=row[5],
        platform_fit_score=row[6],
        host_compatibility_score=row[7],
        recommendations=_loads_optional(row[8]),
        updated_at=datetime.datetime.fromisoformat(row[9]),
    )


def _row_to_platform(row: sqlite3.Row) -> PlatformRules:
    """Convert a database row tuple to PlatformRules.

    ``accepted_compression`` is passed through as the stored JSON string;
    the model parses it.
    """
    return PlatformRules(
        slug=row[0],
        name=row[1],
        initial_download_max_mb=row[2],
        total_build_max_mb=row[3],
        max_file_count=row[4],
        max_single_file_mb=row[5],
        requires_compressed_build=bool(row[6]),
        accepted_compression=row[7],
        requires_sdk_injection=bool(row[8]),
        sdk_type=row[9],
        notes=row[10],
    )


def _row_to_host(row: sqlite3.Row) -> HostRules:
    """Convert a database row tuple to HostRules."""
    return HostRules(
        slug=row[0],
        name=row[1],
        supports_brotli=bool(row[2]),
        supports_gzip=bool(row[3]),
        requires_manual_header_config=bool(row[4]),
        default_spa_fallback=bool(row[5]),
        edge_network=row[6],
        notes=row[7],
    )
