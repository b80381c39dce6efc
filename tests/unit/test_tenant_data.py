"""
Unit tests for the tenant-scoped data accessor and allow-list projection
"""
import pytest

from homefield.core.errors import BackendUnavailableError, NotFoundError
from homefield.domain.services.tenant_data import TenantScopedAccessor
from homefield.utils.tenant_filter import MissingTenantFilterError, apply_tenant_filter, project_allowed

NOTIFY_FIELDS = {"notify_email": bool, "notify_sms": bool}


class TestProjectAllowed:
    """Tests for write allow-lists"""

    def test_drops_unknown_keys(self):
        assert project_allowed({"notify_email": True, "foo": "bar"}, NOTIFY_FIELDS) == {"notify_email": True}

    def test_drops_wrong_types(self):
        assert project_allowed({"notify_email": "yes", "notify_sms": False}, NOTIFY_FIELDS) == {"notify_sms": False}

    def test_bool_rejected_for_int(self):
        assert project_allowed({"max_attempts": True}, {"max_attempts": int}) == {}

    def test_none_clears_non_bool_field(self):
        assert project_allowed({"notes": None}, {"notes": str}) == {"notes": None}

    def test_empty(self):
        assert project_allowed({}, NOTIFY_FIELDS) == {}


class TestApplyTenantFilter:
    """Tests for the mandatory client_id filter"""

    def test_missing_tenant_id_raises(self, fake_supabase):
        with pytest.raises(MissingTenantFilterError):
            apply_tenant_filter(fake_supabase.table("leads").select("*"), None)

    def test_filter_applied(self, portal_db):
        query = apply_tenant_filter(portal_db.table("leads").select("*"), "tenant-a")
        rows = query.execute().data
        assert {row["client_id"] for row in rows} == {"tenant-a"}


class TestTenantScopedAccessor:
    """Tests for list/get/update/delete isolation"""

    def test_list_only_own_rows(self, portal_db):
        page = TenantScopedAccessor(portal_db).list("leads", "tenant-a")

        assert page.count == 2
        assert [row["id"] for row in page.rows] == ["lead-a2", "lead-a1"]

    def test_list_with_filter_and_paging(self, portal_db):
        accessor = TenantScopedAccessor(portal_db)

        assert [r["id"] for r in accessor.list("leads", "tenant-a", filters={"status": "new"}).rows] == ["lead-a1"]
        page = accessor.list("leads", "tenant-a", limit=1, offset=1)
        assert [r["id"] for r in page.rows] == ["lead-a1"]
        assert page.count == 2

    def test_unscoped_collection_rejected(self, portal_db):
        with pytest.raises(ValueError):
            TenantScopedAccessor(portal_db).list("dialer_leads", "tenant-a")

    def test_empty_tenant_rejected(self, portal_db):
        with pytest.raises(MissingTenantFilterError):
            TenantScopedAccessor(portal_db).list("leads", "")

    def test_list_store_failure(self, portal_db):
        portal_db.failing_tables.add("leads")
        with pytest.raises(BackendUnavailableError):
            TenantScopedAccessor(portal_db).list("leads", "tenant-a")

    def test_get_other_tenant_row_is_not_found(self, portal_db):
        with pytest.raises(NotFoundError):
            TenantScopedAccessor(portal_db).get("leads", "tenant-a", "lead-b1")

    def test_update_respects_allow_list(self, portal_db):
        row = TenantScopedAccessor(portal_db).update(
            "leads", "tenant-a", "lead-a1", {"status": "qualified", "client_id": "tenant-b"}, {"status": str}
        )

        assert row["status"] == "qualified"
        assert row["client_id"] == "tenant-a"

    def test_update_nothing_writable(self, portal_db):
        with pytest.raises(ValueError):
            TenantScopedAccessor(portal_db).update("leads", "tenant-a", "lead-a1", {"foo": 1}, {"status": str})

    def test_delete_other_tenant_row(self, portal_db):
        with pytest.raises(NotFoundError):
            TenantScopedAccessor(portal_db).delete("client_team_members", "tenant-a", "member-row-b")
        assert len(portal_db.rows("client_team_members")) == 2


class TestTenantRows:
    """Tests for agency_clients maintenance"""

    def test_update_by_owner_persists_only_allowed(self, portal_db):
        result = TenantScopedAccessor(portal_db).update_tenant_by_owner(
            "owner-a", {"notify_email": True, "foo": "bar", "role": "admin"}, NOTIFY_FIELDS
        )

        assert result == {"notify_email": True, "notify_sms": False}
        row = next(r for r in portal_db.rows("agency_clients") if r["id"] == "tenant-a")
        assert row["notify_email"] is True
        assert row["role"] == "client"
        assert "foo" not in row

    def test_update_by_owner_nothing_writable(self, portal_db):
        with pytest.raises(ValueError):
            TenantScopedAccessor(portal_db).update_tenant_by_owner("owner-a", {"foo": "bar"}, NOTIFY_FIELDS)

    def test_update_by_unknown_owner(self, portal_db):
        with pytest.raises(NotFoundError):
            TenantScopedAccessor(portal_db).update_tenant_by_owner("nobody", {"notify_sms": True}, NOTIFY_FIELDS)

    def test_update_by_owner_skips_soft_deleted(self, portal_db):
        with pytest.raises(NotFoundError):
            TenantScopedAccessor(portal_db).update_tenant_by_owner("owner-gone", {"notify_sms": True}, NOTIFY_FIELDS)

        row = next(r for r in portal_db.rows("agency_clients") if r["id"] == "tenant-gone")
        assert "notify_sms" not in row

    def test_list_active_excludes_soft_deleted(self, portal_db):
        tenants = TenantScopedAccessor(portal_db).list_active_tenants()

        assert [t.id for t in tenants] == ["tenant-b", "tenant-a", "tenant-admin"]

    def test_soft_delete_keeps_dependents(self, portal_db):
        soft = TenantScopedAccessor(portal_db).soft_delete_tenant("tenant-b")

        assert soft is True
        row = next(r for r in portal_db.rows("agency_clients") if r["id"] == "tenant-b")
        assert row["deleted_at"] is not None
        assert any(lead["client_id"] == "tenant-b" for lead in portal_db.rows("leads"))

    def test_hard_delete_fallback_without_deleted_at(self, portal_db):
        portal_db.missing_columns["agency_clients"] = {"deleted_at"}

        soft = TenantScopedAccessor(portal_db).soft_delete_tenant("tenant-b")

        assert soft is False
        assert all(r["id"] != "tenant-b" for r in portal_db.rows("agency_clients"))
        assert any(lead["client_id"] == "tenant-b" for lead in portal_db.rows("leads"))

    def test_soft_delete_other_failure(self, portal_db):
        portal_db.failing_tables.add("agency_clients")
        with pytest.raises(BackendUnavailableError):
            TenantScopedAccessor(portal_db).soft_delete_tenant("tenant-b")
