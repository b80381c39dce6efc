"""
Unit tests for TenantResolver
"""
from homefield.domain.models.tenant import Identity, MembershipKind
from homefield.domain.services.tenant_resolver import TenantResolver


class TestTenantResolution:
    """Tests for identity -> tenant resolution"""

    def test_primary_owner(self, portal_db):
        context = TenantResolver(portal_db).resolve(Identity(id="owner-a"))

        assert context.tenant_id == "tenant-a"
        assert context.membership == MembershipKind.PRIMARY
        assert context.is_primary

    def test_team_member_resolves_parent(self, portal_db):
        context = TenantResolver(portal_db).resolve(Identity(id="member-a"))

        assert context.tenant_id == "tenant-a"
        assert context.membership == MembershipKind.TEAM_MEMBER
        assert not context.is_primary

    def test_direct_ownership_beats_membership(self, portal_db):
        # owner-b also appears as a team member of tenant-a
        portal_db.seed("client_team_members", [
            {"id": "member-row-x", "client_id": "tenant-a", "auth_user_id": "owner-b"},
        ])

        context = TenantResolver(portal_db).resolve(Identity(id="owner-b"))

        assert context.tenant_id == "tenant-b"
        assert context.membership == MembershipKind.PRIMARY

    def test_unknown_identity(self, portal_db):
        assert TenantResolver(portal_db).resolve(Identity(id="nobody")) is None

    def test_no_identity(self, portal_db):
        assert TenantResolver(portal_db).resolve(None) is None

    def test_soft_deleted_owner_has_no_tenant(self, portal_db):
        assert TenantResolver(portal_db).resolve(Identity(id="owner-gone")) is None

    def test_member_of_soft_deleted_tenant(self, portal_db):
        portal_db.seed("client_team_members", [
            {"id": "member-row-gone", "client_id": "tenant-gone", "auth_user_id": "member-gone"},
        ])
        assert TenantResolver(portal_db).resolve(Identity(id="member-gone")) is None

    def test_store_failure_is_no_tenant(self, portal_db):
        portal_db.failing_tables.add("agency_clients")

        assert TenantResolver(portal_db).resolve(Identity(id="owner-a")) is None

    def test_direct_lookup_failure_skips_membership(self, portal_db):
        portal_db.failing_tables.add("agency_clients")

        TenantResolver(portal_db).resolve(Identity(id="member-a"))

        tables = [query.table for query in portal_db.executed]
        assert "client_team_members" not in tables

    def test_at_most_three_lookups(self, portal_db):
        TenantResolver(portal_db).resolve(Identity(id="member-a"))
        assert len(portal_db.executed) == 3

    def test_admin_role_carried(self, portal_db):
        context = TenantResolver(portal_db).resolve(Identity(id="admin-user"))
        assert context.tenant.is_admin


class TestGetTenant:
    """Tests for point lookups by tenant id"""

    def test_existing(self, portal_db):
        tenant = TenantResolver(portal_db).get_tenant("tenant-b")
        assert tenant.legal_business_name == "Bolt Gutters"

    def test_soft_deleted_still_returned(self, portal_db):
        tenant = TenantResolver(portal_db).get_tenant("tenant-gone")
        assert tenant.is_deleted

    def test_missing(self, portal_db):
        assert TenantResolver(portal_db).get_tenant("tenant-zzz") is None

    def test_store_failure(self, portal_db):
        portal_db.failing_tables.add("agency_clients")
        assert TenantResolver(portal_db).get_tenant("tenant-a") is None
