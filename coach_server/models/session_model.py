# coach_server/models/session_model.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Session record models
----------------------------------------------
Pydantic models for the single persisted blob per user:

    SessionRecord
      ├─ messages       : ordered list of Message (append-only until clear)
      ├─ user_profile   : UserProfile (skill level, focus areas, ...)
      └─ workflow_state : WorkflowState (only for workflow-mode sessions)

JSON uses camelCase field names (userId, messageId, lastActivity, ...),
both on the wire and in storage. Python code uses snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: camelCase aliases, populated by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# ---------------------------------------------------------------------------
# Messages / profile
# ---------------------------------------------------------------------------


class Message(CamelModel):
    """
    One message in a session.

    message_id is unique within the record and grows by one per appended
    message; it is not globally unique.
    """

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    message_id: int = Field(..., ge=1)
    metadata: Optional[Dict[str, Any]] = None

    def as_chat_message(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class UserProfile(CamelModel):
    skill_level: SkillLevel = SkillLevel.INTERMEDIATE
    focus_areas: Set[str] = Field(default_factory=set)
    weaknesses: Set[str] = Field(default_factory=set)
    strengths: Set[str] = Field(default_factory=set)


# ---------------------------------------------------------------------------
# Workflow state
# ---------------------------------------------------------------------------


class TechnicalScores(CamelModel):
    problem_solving: int = Field(..., ge=1, le=10)
    code_quality: int = Field(..., ge=1, le=10)
    system_thinking: int = Field(..., ge=1, le=10)


class CommunicationScores(CamelModel):
    clarity: int = Field(..., ge=1, le=10)
    structure: int = Field(..., ge=1, le=10)
    engagement: int = Field(..., ge=1, le=10)


class PerformanceSummary(CamelModel):
    overall_rating: int = Field(..., ge=1, le=10)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    technical: TechnicalScores
    communication: CommunicationScores
    recommendations: List[str] = Field(default_factory=list)


class AssessmentData(CamelModel):
    technical_strength: Optional[SkillLevel] = None
    communication_style: Optional[str] = None
    problem_solving_approach: Optional[str] = None
    areas_for_improvement: List[str] = Field(default_factory=list)
    summary: Optional[PerformanceSummary] = None


# Number of workflow steps; current_step_index == N_STEPS once the
# feedback summary has been produced.
N_STEPS = 5


class WorkflowState(CamelModel):
    interview_type: str = "general"
    current_step_index: int = Field(0, ge=0, le=N_STEPS)
    start_time: datetime = Field(default_factory=utc_now)
    responses: List[str] = Field(default_factory=list)
    assessment_data: AssessmentData = Field(default_factory=AssessmentData)
    completed: bool = False


# ---------------------------------------------------------------------------
# Session record
# ---------------------------------------------------------------------------


class SessionRecord(CamelModel):
    """
    Durable state for one user id; the unit of persistence.

    Attributes
    ----------
    user_id:
        Identity the record belongs to; never changes after creation.
    mode:
        Reply strategy fixed at creation ("conversation" | "workflow").
    messages:
        Conversation in insertion order.
    user_profile:
        Coarse profile updated by the workflow.
    session_started / last_activity:
        Creation time and time of the last mutation.
    workflow_state:
        Interview progress, present only for workflow-mode records.
    """

    user_id: str
    mode: Literal["conversation", "workflow"] = "conversation"
    messages: List[Message] = Field(default_factory=list)
    user_profile: UserProfile = Field(default_factory=UserProfile)
    session_started: datetime = Field(default_factory=utc_now)
    last_activity: datetime = Field(default_factory=utc_now)
    workflow_state: Optional[WorkflowState] = None

    def next_message_id(self) -> int:
        if not self.messages:
            return 1
        return self.messages[-1].message_id + 1

    def append(
        self,
        role: Role,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """Append a message with the next id and return it."""
        message = Message(
            role=role,
            content=content,
            message_id=self.next_message_id(),
            metadata=metadata,
        )
        self.messages.append(message)
        return message

    def touch(self) -> None:
        self.last_activity = utc_now()
