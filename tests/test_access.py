"""Tests for row-level policies and the authorized backend."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.access import (
    POLICIES,
    AccessDeniedError,
    AuthorizedBackend,
    Entity,
    Operation,
    authorize,
    is_allowed,
)
from expense_tracker.models import ActivityAction, ActivityLogEntry, Budget, Category
from expense_tracker.services.storage import NotFoundError

from conftest import make_expense


ACTOR = uuid4()
OTHER = uuid4()


class TestPolicyTable:
    """Tests for the predicate table."""

    def test_every_pair_has_a_policy(self):
        """Test that no (entity, operation) pair falls through to the default."""
        for entity in Entity:
            for operation in Operation:
                assert (entity, operation) in POLICIES

    @pytest.mark.parametrize("operation", list(Operation))
    def test_expense_owner_only(self, operation):
        """Test expenses are visible and mutable by their owner only."""
        own = make_expense("10", date(2025, 3, 1), uuid4(), user_id=ACTOR)
        theirs = make_expense("10", date(2025, 3, 1), uuid4(), user_id=OTHER)
        assert is_allowed(Entity.EXPENSE, operation, ACTOR, own)
        assert not is_allowed(Entity.EXPENSE, operation, ACTOR, theirs)

    def test_default_category_visible_to_everyone(self):
        default = Category(name="Groceries", icon="shopping-cart", is_default=True)
        assert is_allowed(Entity.CATEGORY, Operation.SELECT, ACTOR, default)
        assert is_allowed(Entity.CATEGORY, Operation.SELECT, OTHER, default)

    @pytest.mark.parametrize(
        "operation", [Operation.INSERT, Operation.UPDATE, Operation.DELETE]
    )
    def test_default_category_never_mutable(self, operation):
        """Test that nobody can change a default category."""
        default = Category(name="Groceries", icon="shopping-cart", is_default=True)
        assert not is_allowed(Entity.CATEGORY, operation, ACTOR, default)
        assert not is_allowed(Entity.CATEGORY, operation, None, default)

    def test_custom_category_owner_only(self):
        own = Category(name="Coffee", icon="coffee", user_id=ACTOR)
        for operation in Operation:
            assert is_allowed(Entity.CATEGORY, operation, ACTOR, own)
            assert not is_allowed(Entity.CATEGORY, operation, OTHER, own)

    def test_budget_owner_only(self):
        own = Budget(category_id=uuid4(), user_id=ACTOR, amount=Decimal("100"))
        for operation in Operation:
            assert is_allowed(Entity.BUDGET, operation, ACTOR, own)
            assert not is_allowed(Entity.BUDGET, operation, OTHER, own)

    def test_budget_amount_checked_on_write(self):
        """Test the non-negative check, bypassing model validation."""
        negative = Budget.model_construct(
            id=uuid4(), category_id=uuid4(), user_id=ACTOR, amount=Decimal("-1")
        )
        assert not is_allowed(Entity.BUDGET, Operation.INSERT, ACTOR, negative)
        assert not is_allowed(Entity.BUDGET, Operation.UPDATE, ACTOR, negative)

    @pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.DELETE])
    def test_activity_is_append_only(self, operation):
        """Test that even the owner cannot change a log entry."""
        entry = ActivityLogEntry(action=ActivityAction.ADD, entity_id=uuid4(), user_id=ACTOR)
        assert is_allowed(Entity.ACTIVITY, Operation.SELECT, ACTOR, entry)
        assert not is_allowed(Entity.ACTIVITY, operation, ACTOR, entry)

    def test_anonymous_actor_denied(self):
        own = make_expense("10", date(2025, 3, 1), uuid4(), user_id=ACTOR)
        for operation in Operation:
            assert not is_allowed(Entity.EXPENSE, operation, None, own)

    def test_authorize_raises(self):
        theirs = make_expense("10", date(2025, 3, 1), uuid4(), user_id=OTHER)
        with pytest.raises(AccessDeniedError) as exc_info:
            authorize(Entity.EXPENSE, Operation.UPDATE, ACTOR, theirs)
        assert exc_info.value.operation == Operation.UPDATE


class TestAuthorizedBackend:
    """Tests for the policy-enforcing backend."""

    async def test_insert_stamps_owner(self, backend, alice, groceries):
        """Test that a client-sent owner is overwritten with the actor."""
        sent = make_expense("50", date(2025, 3, 1), groceries.id, user_id=uuid4())
        saved = await backend.insert_expense(sent)
        assert saved.user_id == alice.user_id

    async def test_reads_are_scoped_to_owner(self, backend, bob_backend, groceries):
        await backend.insert_expense(make_expense("50", date(2025, 3, 1), groceries.id))
        assert len(await backend.list_expenses()) == 1
        assert await bob_backend.list_expenses() == []
        assert await bob_backend.count_expenses() == 0

    async def test_foreign_expense_is_invisible(self, backend, bob_backend, groceries):
        """Test another user's row reads as missing."""
        saved = await backend.insert_expense(make_expense("50", date(2025, 3, 1), groceries.id))
        assert await bob_backend.get_expense(saved.id) is None
        with pytest.raises(NotFoundError):
            await bob_backend.update_expense(saved.model_copy(update={"is_deleted": True}))

    async def test_update_keeps_owner(self, backend, groceries):
        """Test an update cannot move a row to another owner."""
        saved = await backend.insert_expense(make_expense("50", date(2025, 3, 1), groceries.id))
        with pytest.raises(AccessDeniedError):
            await backend.update_expense(saved.model_copy(update={"user_id": uuid4()}))

    async def test_update_bumps_updated_at(self, backend, groceries):
        saved = await backend.insert_expense(make_expense("50", date(2025, 3, 1), groceries.id))
        updated = await backend.update_expense(saved.model_copy(update={"is_deleted": True}))
        assert updated.updated_at >= saved.updated_at
        assert updated.created_at == saved.created_at

    async def test_categories_defaults_plus_own(self, backend, bob_backend, alice):
        await backend.insert_category(Category(name="Coffee", icon="coffee", user_id=alice.user_id))
        alice_names = [c.name for c in await backend.list_categories()]
        bob_names = [c.name for c in await bob_backend.list_categories()]
        assert "Coffee" in alice_names
        assert "Coffee" not in bob_names
        assert len(alice_names) == 21
        assert alice_names == sorted(alice_names, key=str.lower)

    async def test_category_insert_for_someone_else_denied(self, backend):
        with pytest.raises(AccessDeniedError):
            await backend.insert_category(Category(name="Coffee", icon="coffee", user_id=uuid4()))

    async def test_default_category_update_denied(self, backend, storage, groceries):
        with pytest.raises(AccessDeniedError):
            await backend.update_category(groceries.model_copy(update={"name": "Food"}))
        assert (await storage.categories.get_category(groceries.id)).name == "Groceries"

    async def test_default_category_delete_denied(self, backend, storage, groceries):
        with pytest.raises(AccessDeniedError):
            await backend.delete_category(groceries.id)
        assert await storage.categories.get_category(groceries.id) is not None

    async def test_own_category_delete_allowed(self, backend, alice):
        own = await backend.insert_category(Category(name="Coffee", icon="coffee", user_id=alice.user_id))
        assert await backend.delete_category(own.id) is True
        assert await backend.get_category(own.id) is None

    async def test_budget_delete_only_touches_own_rows(
        self, backend, bob_backend, alice, bob, groceries
    ):
        await backend.insert_budget(Budget(category_id=groceries.id, user_id=alice.user_id, amount=Decimal("100")))
        await bob_backend.insert_budget(Budget(category_id=groceries.id, user_id=bob.user_id, amount=Decimal("200")))
        assert await backend.delete_budgets() == 1
        assert await backend.list_budgets() == []
        assert len(await bob_backend.list_budgets()) == 1

    async def test_activity_owner_stamped(self, backend, bob_backend, alice):
        entry = ActivityLogEntry(action=ActivityAction.ADD, entity_id=uuid4(), user_id=uuid4())
        saved = await backend.append_activity(entry)
        assert saved.user_id == alice.user_id
        assert len(await backend.list_activity()) == 1
        assert await bob_backend.list_activity() == []

    async def test_signed_out_denied(self, storage, groceries):
        anonymous = AuthorizedBackend(storage, None)
        with pytest.raises(AccessDeniedError):
            await anonymous.list_expenses()
        with pytest.raises(AccessDeniedError):
            await anonymous.insert_expense(make_expense("5", date(2025, 3, 1), groceries.id))
        with pytest.raises(AccessDeniedError):
            await anonymous.list_categories()
