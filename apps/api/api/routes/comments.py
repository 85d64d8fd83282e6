from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, status
from pydantic import BaseModel, StringConstraints

from apps.api.api.schemas import ERROR_RESPONSES, Envelope, UserSummaryModel
from apps.api.dependencies.auth import CurrentUser
from apps.api.dependencies.tickets import CommentServiceDep
from apps.api.services.comments import Comment

router = APIRouter(tags=["comments"], responses=ERROR_RESPONSES)


class TicketReferenceModel(BaseModel):
    id: str
    title: str | None = None


class CommentModel(BaseModel):
    id: str
    ticket: TicketReferenceModel
    author: UserSummaryModel
    comment: str
    created_at: str

    @classmethod
    def from_entity(cls, entity: Comment) -> "CommentModel":
        return cls(
            id=entity.id,
            ticket=TicketReferenceModel(id=entity.ticket.id, title=entity.ticket.title),
            author=UserSummaryModel.from_entity(entity.author),
            comment=entity.comment,
            created_at=entity.created_at.isoformat(),
        )


class CommentRequest(BaseModel):
    comment: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


@router.post(
    "/tickets/{ticket_id}/comments",
    response_model=Envelope[CommentModel],
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    ticket_id: str,
    payload: CommentRequest,
    service: CommentServiceDep,
    user: CurrentUser,
) -> Envelope[CommentModel]:
    comment = await service.create_comment(ticket_id, body=payload.comment, actor=user.actor)
    return Envelope(data=CommentModel.from_entity(comment))


@router.get("/tickets/{ticket_id}/comments", response_model=Envelope[list[CommentModel]])
async def list_comments(ticket_id: str, service: CommentServiceDep, user: CurrentUser) -> Envelope[list[CommentModel]]:
    comments = await service.list_comments(ticket_id, actor=user.actor)
    return Envelope(data=[CommentModel.from_entity(comment) for comment in comments])


@router.patch("/comments/{comment_id}", response_model=Envelope[CommentModel])
async def update_comment(
    comment_id: str,
    payload: CommentRequest,
    service: CommentServiceDep,
    user: CurrentUser,
) -> Envelope[CommentModel]:
    comment = await service.update_comment(comment_id, body=payload.comment, actor=user.actor)
    return Envelope(data=CommentModel.from_entity(comment))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: str, service: CommentServiceDep, user: CurrentUser) -> None:
    await service.delete_comment(comment_id, actor=user.actor)
