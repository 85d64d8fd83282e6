from __future__ import annotations

import pytest
import pytest_asyncio

from apps.api.metrics import COMMENTS_CREATED
from apps.api.services.access import Role
from apps.api.services.errors import (
    AccessDeniedError,
    CommentNotFoundError,
    CommentValidationError,
    TicketNotFoundError,
)


@pytest_asyncio.fixture
async def thread(make_user, ticket_service):
    people = {
        "u1": await make_user("Uma", Role.USER),
        "u2": await make_user("Ulf", Role.USER),
        "s1": await make_user("Sam", Role.SUPPORT),
        "s2": await make_user("Sia", Role.SUPPORT),
        "m1": await make_user("Mia", Role.MANAGER),
    }
    ticket = await ticket_service.create_ticket(
        title="Printer broken",
        description="The office printer jams every print",
        actor=people["u1"].actor,
    )
    await ticket_service.assign_ticket(ticket.id, assignee_id=people["s1"].id, actor=people["m1"].actor)
    return people, ticket


@pytest.mark.asyncio
async def test_owner_comments_and_outsider_cannot_list(comment_service, thread, metrics):
    people, ticket = thread

    comment = await comment_service.create_comment(ticket.id, body="  Still jamming  ", actor=people["u1"].actor)
    assert comment.comment == "Still jamming"
    assert comment.author.id == people["u1"].id
    assert comment.ticket.id == ticket.id
    assert comment.ticket.title == "Printer broken"
    assert metrics.counter(COMMENTS_CREATED).value() == 1

    with pytest.raises(AccessDeniedError) as exc:
        await comment_service.list_comments(ticket.id, actor=people["u2"].actor)
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_participants_see_thread_in_posting_order(comment_service, thread):
    people, ticket = thread

    await comment_service.create_comment(ticket.id, body="First", actor=people["u1"].actor)
    await comment_service.create_comment(ticket.id, body="Second", actor=people["s1"].actor)
    await comment_service.create_comment(ticket.id, body="Third", actor=people["m1"].actor)

    for viewer in ("u1", "s1", "m1"):
        comments = await comment_service.list_comments(ticket.id, actor=people[viewer].actor)
        assert [item.comment for item in comments] == ["First", "Second", "Third"]


@pytest.mark.asyncio
async def test_unassigned_support_cannot_comment(comment_service, thread):
    people, ticket = thread

    with pytest.raises(AccessDeniedError):
        await comment_service.create_comment(ticket.id, body="Hello", actor=people["s2"].actor)


@pytest.mark.asyncio
async def test_non_creator_user_cannot_comment(comment_service, comment_repository, thread):
    people, ticket = thread

    with pytest.raises(AccessDeniedError):
        await comment_service.create_comment(ticket.id, body="Me too", actor=people["u2"].actor)

    assert await comment_repository.list_comments(ticket.id) == []


@pytest.mark.asyncio
async def test_blank_comment_rejected(comment_service, thread):
    people, ticket = thread

    with pytest.raises(CommentValidationError):
        await comment_service.create_comment(ticket.id, body="   ", actor=people["u1"].actor)


@pytest.mark.asyncio
async def test_missing_ticket_is_not_found(comment_service, thread):
    people, _ = thread

    with pytest.raises(TicketNotFoundError):
        await comment_service.create_comment("missing", body="Hello", actor=people["m1"].actor)
    with pytest.raises(TicketNotFoundError):
        await comment_service.list_comments("missing", actor=people["m1"].actor)


@pytest.mark.asyncio
async def test_author_or_manager_may_modify(comment_service, thread):
    people, ticket = thread
    comment = await comment_service.create_comment(ticket.id, body="Original", actor=people["u1"].actor)

    with pytest.raises(AccessDeniedError):
        await comment_service.update_comment(comment.id, body="Hijacked", actor=people["s1"].actor)

    edited = await comment_service.update_comment(comment.id, body=" Edited ", actor=people["u1"].actor)
    assert edited.comment == "Edited"

    moderated = await comment_service.update_comment(comment.id, body="Moderated", actor=people["m1"].actor)
    assert moderated.comment == "Moderated"

    with pytest.raises(AccessDeniedError):
        await comment_service.delete_comment(comment.id, actor=people["u2"].actor)

    await comment_service.delete_comment(comment.id, actor=people["u1"].actor)
    with pytest.raises(CommentNotFoundError):
        await comment_service.delete_comment(comment.id, actor=people["m1"].actor)


@pytest.mark.asyncio
async def test_comments_survive_ticket_deletion(comment_service, comment_repository, ticket_service, thread):
    people, ticket = thread
    await comment_service.create_comment(ticket.id, body="Before delete", actor=people["u1"].actor)

    await ticket_service.delete_ticket(ticket.id, actor=people["m1"].actor)

    orphans = await comment_repository.list_comments(ticket.id)
    assert [item.comment for item in orphans] == ["Before delete"]
    assert orphans[0].ticket.title is None
    with pytest.raises(TicketNotFoundError):
        await comment_service.list_comments(ticket.id, actor=people["m1"].actor)
