import pytest

from apps.api.services.access import (
    Role,
    TicketScope,
    can_assign_ticket,
    can_change_status,
    can_comment_on_ticket,
    can_create_ticket,
    can_delete_ticket,
    can_edit_ticket,
    can_manage_users,
    can_modify_comment,
    can_view_comments,
    can_view_ticket,
    is_assignable_role,
    ticket_scope,
)


def test_manager_can_view_any_ticket():
    assert can_view_ticket(Role.MANAGER, "m1", "u1", None)
    assert can_view_ticket(Role.MANAGER, "m1", "u1", "s1")


def test_user_sees_only_own_tickets():
    assert can_view_ticket(Role.USER, "u1", "u1", None)
    assert not can_view_ticket(Role.USER, "u2", "u1", None)
    assert not can_view_ticket(Role.USER, "u2", "u1", "u2")


def test_support_sees_only_assigned_tickets():
    assert can_view_ticket(Role.SUPPORT, "s1", "u1", "s1")
    assert not can_view_ticket(Role.SUPPORT, "s1", "u1", None)
    assert not can_view_ticket(Role.SUPPORT, "s1", "s1", "s2")


def test_unknown_role_is_allowed_nothing():
    assert not can_view_ticket("AUDITOR", "x", "x", "x")
    assert not can_create_ticket("AUDITOR")
    assert not can_modify_comment("AUDITOR", "x", "x")
    assert ticket_scope("AUDITOR", "x") == TicketScope(empty=True)
    assert not ticket_scope("AUDITOR", "x").unrestricted


def test_ticket_scope_per_role():
    assert ticket_scope(Role.MANAGER, "m1") == TicketScope()
    assert ticket_scope(Role.MANAGER, "m1").unrestricted
    assert ticket_scope(Role.SUPPORT, "s1") == TicketScope(assigned_to="s1")
    assert ticket_scope(Role.USER, "u1") == TicketScope(created_by="u1")


@pytest.mark.parametrize(
    ("role", "create", "staff", "delete"),
    [
        (Role.USER, True, False, False),
        (Role.SUPPORT, False, True, False),
        (Role.MANAGER, True, True, True),
    ],
)
def test_role_gates(role, create, staff, delete):
    assert can_create_ticket(role) is create
    assert can_assign_ticket(role) is staff
    assert can_change_status(role) is staff
    assert can_delete_ticket(role) is delete
    assert can_manage_users(role) is (role is Role.MANAGER)


def test_edit_rule_limits_to_manager_or_owning_user():
    assert can_edit_ticket(Role.MANAGER, "m1", "u1")
    assert can_edit_ticket(Role.USER, "u1", "u1")
    assert not can_edit_ticket(Role.USER, "u2", "u1")
    assert not can_edit_ticket(Role.SUPPORT, "s1", "s1")


def test_comment_rules_follow_ticket_participation():
    assert can_comment_on_ticket(Role.USER, "u1", "u1", "s1")
    assert can_comment_on_ticket(Role.SUPPORT, "s1", "u1", "s1")
    assert not can_comment_on_ticket(Role.SUPPORT, "s2", "u1", "s1")
    assert not can_comment_on_ticket(Role.USER, "u2", "u1", "s1")
    assert can_view_comments(Role.MANAGER, "m1", "u1", None)
    assert not can_view_comments(Role.USER, "u2", "u1", "s1")


def test_comment_modification_by_author_or_manager():
    assert can_modify_comment(Role.USER, "u1", "u1")
    assert can_modify_comment(Role.SUPPORT, "s1", "s1")
    assert can_modify_comment(Role.MANAGER, "m1", "u1")
    assert not can_modify_comment(Role.USER, "u2", "u1")


def test_assignable_roles_are_support_and_manager():
    assert is_assignable_role(Role.SUPPORT)
    assert is_assignable_role("MANAGER")
    assert not is_assignable_role(Role.USER)
    assert not is_assignable_role(None)
