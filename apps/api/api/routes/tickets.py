from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field, StringConstraints

from apps.api.api.schemas import ERROR_RESPONSES, Envelope, UserSummaryModel
from apps.api.dependencies.auth import CurrentUser, ManagerUser, StaffUser, TicketCreatorUser
from apps.api.dependencies.tickets import TicketServiceDep
from apps.api.services.status import TicketPriority, TicketStatus, valid_next_statuses
from apps.api.services.tickets import Ticket, TicketStatusLog

router = APIRouter(prefix="/tickets", tags=["tickets"], responses=ERROR_RESPONSES)

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=255)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10)]


class TicketModel(BaseModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_by: UserSummaryModel
    assigned_to: UserSummaryModel | None = None
    created_at: str
    next_statuses: list[TicketStatus] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: Ticket) -> "TicketModel":
        return cls(
            id=entity.id,
            title=entity.title,
            description=entity.description,
            status=entity.status,
            priority=entity.priority,
            created_by=UserSummaryModel.from_entity(entity.created_by),
            assigned_to=UserSummaryModel.from_entity(entity.assigned_to) if entity.assigned_to else None,
            created_at=entity.created_at.isoformat(),
            next_statuses=sorted(valid_next_statuses(entity.status), key=lambda item: item.value),
        )


class TicketStatusLogModel(BaseModel):
    id: str
    ticket_id: str
    old_status: TicketStatus | None = None
    new_status: TicketStatus
    changed_by: UserSummaryModel | None = None
    changed_at: str

    @classmethod
    def from_entity(cls, entity: TicketStatusLog) -> "TicketStatusLogModel":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            old_status=entity.old_status,
            new_status=entity.new_status,
            changed_by=UserSummaryModel.from_entity(entity.changed_by) if entity.changed_by else None,
            changed_at=entity.changed_at.isoformat(),
        )


class TicketCreateRequest(BaseModel):
    title: Title
    description: Description
    priority: TicketPriority = TicketPriority.MEDIUM


class TicketUpdateRequest(BaseModel):
    title: Title | None = None
    description: Description | None = None
    priority: TicketPriority | None = None

    def ensure_payload(self) -> None:
        if self.title is None and self.description is None and self.priority is None:
            raise HTTPException(status_code=400, detail="No fields provided for update")


class TicketAssignRequest(BaseModel):
    assigned_to: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TicketStatusChangeRequest(BaseModel):
    status: TicketStatus


@router.post("", response_model=Envelope[TicketModel], status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    user: TicketCreatorUser,
) -> Envelope[TicketModel]:
    ticket = await service.create_ticket(
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        actor=user.actor,
    )
    return Envelope(data=TicketModel.from_entity(ticket))


@router.get("", response_model=Envelope[list[TicketModel]], summary="List tickets visible to the caller")
async def list_tickets(service: TicketServiceDep, user: CurrentUser) -> Envelope[list[TicketModel]]:
    tickets = await service.list_tickets(actor=user.actor)
    return Envelope(data=[TicketModel.from_entity(ticket) for ticket in tickets])


@router.get("/{ticket_id}", response_model=Envelope[TicketModel])
async def get_ticket(ticket_id: str, service: TicketServiceDep, user: CurrentUser) -> Envelope[TicketModel]:
    ticket = await service.get_ticket(ticket_id, actor=user.actor)
    return Envelope(data=TicketModel.from_entity(ticket))


@router.patch("/{ticket_id}", response_model=Envelope[TicketModel])
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    user: CurrentUser,
) -> Envelope[TicketModel]:
    payload.ensure_payload()
    ticket = await service.update_ticket(
        ticket_id,
        actor=user.actor,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
    )
    return Envelope(data=TicketModel.from_entity(ticket))


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: str, service: TicketServiceDep, user: ManagerUser) -> None:
    await service.delete_ticket(ticket_id, actor=user.actor)


@router.patch("/{ticket_id}/assign", response_model=Envelope[TicketModel])
async def assign_ticket(
    ticket_id: str,
    payload: TicketAssignRequest,
    service: TicketServiceDep,
    user: StaffUser,
) -> Envelope[TicketModel]:
    ticket = await service.assign_ticket(ticket_id, assignee_id=payload.assigned_to, actor=user.actor)
    return Envelope(data=TicketModel.from_entity(ticket))


@router.patch("/{ticket_id}/status", response_model=Envelope[TicketModel])
async def change_ticket_status(
    ticket_id: str,
    payload: TicketStatusChangeRequest,
    service: TicketServiceDep,
    user: StaffUser,
) -> Envelope[TicketModel]:
    ticket = await service.change_status(ticket_id, new_status=payload.status, actor=user.actor)
    return Envelope(data=TicketModel.from_entity(ticket))


@router.get("/{ticket_id}/history", response_model=Envelope[list[TicketStatusLogModel]])
async def get_ticket_history(
    ticket_id: str, service: TicketServiceDep, user: CurrentUser
) -> Envelope[list[TicketStatusLogModel]]:
    entries = await service.get_status_history(ticket_id, actor=user.actor)
    return Envelope(data=[TicketStatusLogModel.from_entity(entry) for entry in entries])
