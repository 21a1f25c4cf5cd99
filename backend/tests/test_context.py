"""
RoleContext resolution tests.

Verifies:
- Each role resolves with its default permission set
- Missing profiles and unknown roles fail closed (seller, no stores)
- Overrides grant/deny codes but never touch protected permissions
- Inactive users load the fail-closed context
"""

from retailhub.permissions import Role, DEFAULT_ROLE_PERMISSIONS
from retailhub.services.context_service import resolve_context, load_context
from retailhub.services import permission_service

from conftest import make_user


class TestResolveContext:

    def test_missing_profile_is_seller_without_stores(self):
        ctx = resolve_context(None)
        assert ctx.role is Role.SELLER
        assert ctx.store_ids == ()
        assert ctx.user_id is None
        assert not ctx.can_access_store(1)

    def test_unknown_role_drops_store_scope(self):
        ctx = resolve_context({"id": 7, "role": "superuser", "store_ids": [1, 2]})
        assert ctx.role is Role.SELLER
        assert ctx.store_ids == ()
        assert ctx.permissions == DEFAULT_ROLE_PERMISSIONS[Role.SELLER]

    def test_manager_scope_and_flags(self):
        ctx = resolve_context({"id": 3, "role": "Manager", "store_ids": ["2", 1, 2]})
        assert ctx.is_manager and not ctx.is_admin and not ctx.is_seller
        assert ctx.store_ids == (1, 2)
        assert ctx.store_count == 2
        assert ctx.can_access_store(2)
        assert not ctx.can_access_store(3)

    def test_admin_reaches_every_store(self):
        ctx = resolve_context({"id": 1, "role": "admin", "store_ids": []})
        assert ctx.can_access_store(999)
        assert ctx.has_permission("DELETE_STORE")

    def test_overrides_apply_except_protected(self):
        ctx = resolve_context({
            "id": 5,
            "role": "seller",
            "store_ids": [1],
            "overrides": [
                ("COUNT_INVENTORY", "GRANT"),
                ("VIEW_FINANCE", "DENY"),
                ("MANAGE_PERMISSIONS", "GRANT"),
            ],
        })
        assert ctx.has_permission("COUNT_INVENTORY")
        assert not ctx.has_permission("VIEW_FINANCE")
        assert not ctx.has_permission("MANAGE_PERMISSIONS")

    def test_seller_cannot_approve_returns(self):
        ctx = resolve_context({"id": 9, "role": "seller", "store_ids": [1]})
        assert not ctx.has_permission("APPROVE_RETURN")
        assert not ctx.has_permission("CREATE_STORE")


class TestLoadContext:

    def test_loads_assignments(self, db_session, manager_user, store_a):
        ctx = load_context(manager_user.id)
        assert ctx.role is Role.MANAGER
        assert ctx.store_ids == (store_a.id,)

    def test_inactive_user_fails_closed(self, db_session, store_a):
        user = make_user(db_session, email="gone@retailhub.test", role="admin",
                         store_ids=[store_a.id], is_active=False)
        ctx = load_context(user.id)
        assert ctx.role is Role.SELLER
        assert ctx.store_ids == ()

    def test_persisted_override_is_applied(self, db_session, admin_ctx, seller_user):
        permission_service.set_permission_override(
            admin_ctx,
            user_id=seller_user.id,
            permission_code="COUNT_INVENTORY",
            override_type="GRANT",
            reason="Inventaire de fin d'année",
        )
        assert load_context(seller_user.id).has_permission("COUNT_INVENTORY")

        permission_service.revoke_permission_override(
            admin_ctx, user_id=seller_user.id, permission_code="COUNT_INVENTORY",
        )
        assert not load_context(seller_user.id).has_permission("COUNT_INVENTORY")
