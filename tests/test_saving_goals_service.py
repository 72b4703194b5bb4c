# tests/test_saving_goals_service.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from app.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models import AuditAction
from app.services.accounts import create_account
from app.services.saving_goals import (
    create_saving_goal,
    delete_saving_goal,
    get_saving_goal,
    list_saving_goals,
    move_money,
    update_saving_goal,
)


@pytest.fixture()
def goal_setup(db, outbox, make_user):
    owner = make_user("saver@test.com")
    account = create_account(db, outbox, owner, name="Savings")
    goal = create_saving_goal(
        db, outbox, owner, account_id=account.id, title="Bike", target_amount=100
    )
    return owner, account, goal


def test_new_goal_starts_empty(goal_setup, outbox):
    _, _, goal = goal_setup
    assert goal.current_amount == Decimal("0")
    assert goal.target_amount == Decimal("100")
    assert outbox.pending[-1].entity_type == "SavingGoal"
    assert outbox.pending[-1].action == AuditAction.CREATE


def test_target_must_be_positive(db, outbox, goal_setup):
    owner, account, _ = goal_setup
    with pytest.raises(ValidationError):
        create_saving_goal(db, outbox, owner, account_id=account.id, title="X", target_amount=0)
    with pytest.raises(ValidationError):
        create_saving_goal(db, outbox, owner, account_id=account.id, title=" ", target_amount=5)


def test_add_past_target_is_refused(db, outbox, goal_setup):
    owner, _, goal = goal_setup
    move_money(db, outbox, owner, goal.id, amount=80, type="ADD")

    with pytest.raises(ConflictError, match="Target amount exceeded."):
        move_money(db, outbox, owner, goal.id, amount=30, type="ADD")
    assert get_saving_goal(db, owner, goal.id).current_amount == Decimal("80")

    # reaching the target exactly is fine
    filled = move_money(db, outbox, owner, goal.id, amount="20", type="ADD")
    assert filled.current_amount == Decimal("100")


def test_remove_more_than_balance_is_refused(db, outbox, goal_setup):
    owner, _, goal = goal_setup
    move_money(db, outbox, owner, goal.id, amount=50, type="ADD")

    with pytest.raises(ConflictError, match="Insufficient funds."):
        move_money(db, outbox, owner, goal.id, amount=60, type="REMOVE")

    left = move_money(db, outbox, owner, goal.id, amount=Decimal("49.50"), type="REMOVE")
    assert left.current_amount == Decimal("0.50")
    emptied = move_money(db, outbox, owner, goal.id, amount="0.50", type="REMOVE")
    assert emptied.current_amount == Decimal("0")
    entry = outbox.pending[-1]
    assert entry.action == AuditAction.UPDATE
    assert entry.old_data["current_amount"] != entry.new_data["current_amount"]


@pytest.mark.parametrize("amount, kind", [(None, "ADD"), (0, "ADD"), (-5, "REMOVE"), (5, "STEAL")])
def test_move_money_input_checks(db, outbox, goal_setup, amount, kind):
    owner, _, goal = goal_setup
    with pytest.raises(ValidationError):
        move_money(db, outbox, owner, goal.id, amount=amount, type=kind)


def test_goals_are_scoped_to_members(db, outbox, goal_setup, make_user):
    _, account, goal = goal_setup
    outsider = make_user("nosy@test.com")
    with pytest.raises(AuthorizationError):
        get_saving_goal(db, outsider, goal.id)
    with pytest.raises(AuthorizationError):
        list_saving_goals(db, outsider, account.id)
    with pytest.raises(NotFoundError):
        get_saving_goal(db, outsider, 9999)


def test_update_list_and_delete(db, outbox, goal_setup):
    owner, account, goal = goal_setup
    create_saving_goal(
        db, outbox, owner, account_id=account.id, title="Trip", target_amount=500,
        deadline=datetime(2030, 1, 1),
    )
    update_saving_goal(db, outbox, owner, goal.id, {"deadline": datetime(2027, 6, 1)})

    titles = [g.title for g in list_saving_goals(db, owner, account.id)]
    assert titles == ["Trip", "Bike"]  # deadline descending

    with pytest.raises(ValidationError):
        update_saving_goal(db, outbox, owner, goal.id, {"target_amount": -1})

    delete_saving_goal(db, outbox, owner, goal.id)
    assert [g.title for g in list_saving_goals(db, owner, account.id)] == ["Trip"]
    assert outbox.pending[-1].action == AuditAction.DELETE


@pytest.mark.parametrize("changes", [{"title": None}, {"title": "  "}, {"target_amount": None}])
def test_update_rejects_blank_required_fields(db, outbox, goal_setup, changes):
    owner, _, goal = goal_setup
    with pytest.raises(ValidationError):
        update_saving_goal(db, outbox, owner, goal.id, changes)
    db.rollback()
    assert get_saving_goal(db, owner, goal.id).title == "Bike"
