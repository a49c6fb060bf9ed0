"""
Ticket Application DTOs
=======================

Data Transfer Objects for the ticket API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.config import Priority, Role


# ========== Request DTOs ==========

class TicketCreateRequest(BaseModel):
    """Request model for opening a ticket."""
    subject: str = Field(..., min_length=1, max_length=500, description="Short summary")
    description: str = Field(..., min_length=1, description="Full problem description")
    priority: Priority = Field(default=Priority.MEDIUM, description="Requested priority")
    category: Optional[str] = Field(None, max_length=100, description="Defaults to General")


class StatusUpdateRequest(BaseModel):
    """Request model for PATCH /tickets/{id}/status."""
    status: str = Field(..., description="Open, In-Progress, Resolved or Closed")


class AssignRequest(BaseModel):
    """Request model for PATCH /tickets/{id}/assign. Null unassigns."""
    assigned_agent_id: Optional[str] = Field(None, description="Staff user ID, or null to unassign")


class ReplyCreateRequest(BaseModel):
    """Request model for posting a reply or internal note."""
    message: str = Field(..., min_length=1, description="Reply text")
    is_internal: bool = Field(default=False, description="Staff-only internal note")


class FeedbackRequest(BaseModel):
    """Creator's rating of a resolved ticket."""
    happiness_rating: int = Field(..., ge=1, le=5)
    customer_feedback: Optional[str] = Field(None, max_length=2000)


class TimeLogRequest(BaseModel):
    """Minutes of work to add to the ticket."""
    minutes: float = Field(..., gt=0, le=24 * 60)


# ========== Response DTOs ==========

class SLAReadingResponse(BaseModel):
    """Response model for an SLA clock reading."""
    model_config = ConfigDict(from_attributes=True)

    state: str = Field(..., description="counting, breached, no_deadline or invalid_deadline")
    deadline: Optional[datetime] = None
    remaining_seconds: float = 0.0
    hours_left: int = 0
    minutes_left: int = 0
    is_urgent: bool = False
    label: str = Field(..., description="Display text, e.g. '1h 30m left'")


class TicketResponse(BaseModel):
    """
    Response model for a ticket.

    Staff-only columns are left unset for Customers and dropped from the
    payload (routes use response_model_exclude_unset).
    """
    id: str
    subject: str
    description: str
    status: str
    priority: str
    category: str
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    assigned_agent_id: Optional[str] = None
    time_spent_minutes: Optional[float] = None
    happiness_rating: Optional[int] = None
    customer_feedback: Optional[str] = None
    sla: Optional[SLAReadingResponse] = None


class TicketListResponse(BaseModel):
    tickets: List[TicketResponse]
    total_count: int


class ReplyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_id: str
    author_id: str
    author_name: str
    author_role: Role
    message: str
    is_internal: bool
    created_at: datetime


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticket_id: str
    actor_name: str
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_id: str
    filename: str
    original_name: str
    content_type: str
    size_bytes: int
    uploaded_by: str
    created_at: datetime
