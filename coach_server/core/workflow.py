# coach_server/core/workflow.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Interview workflow engine
--------------------------------------------------
Deterministic five-step mock interview:

    introduction → technical_assessment → behavioral_questions
                 → system_design → feedback_summary (terminal)

All progress lives in WorkflowState.current_step_index. Each advance()
call moves the index forward by exactly one; once the summary has been
produced the state is completed and further calls return the same
summary without touching the state.

Prompt selection draws from a random.Random supplied by the caller, so a
seeded generator gives reproducible interviews.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from coach_server.models.session_model import (
    N_STEPS,
    AssessmentData,
    CommunicationScores,
    PerformanceSummary,
    SkillLevel,
    TechnicalScores,
    WorkflowState,
)

logger = logging.getLogger(__name__)


class WorkflowStep(str, Enum):
    INTRODUCTION = "introduction"
    TECHNICAL_ASSESSMENT = "technical_assessment"
    BEHAVIORAL_QUESTIONS = "behavioral_questions"
    SYSTEM_DESIGN = "system_design"
    FEEDBACK_SUMMARY = "feedback_summary"


WORKFLOW_STEPS: List[WorkflowStep] = list(WorkflowStep)


# ---------------------------------------------------------------------------
# Prompt pools
# ---------------------------------------------------------------------------

INTRODUCTION_PROMPTS: Dict[str, str] = {
    "general": (
        "Hello! I'm your AI Interview Coach. To provide the best coaching "
        "experience, could you tell me what type of role you're preparing for "
        "and your experience level?"
    ),
    "frontend": (
        "Welcome! I see you're preparing for a frontend role. Let's start by "
        "discussing your experience with JavaScript frameworks. Which ones have "
        "you worked with?"
    ),
    "backend": (
        "Great! For backend roles, let's begin with your experience in system "
        "architecture. Can you describe a complex system you've designed or "
        "worked on?"
    ),
    "fullstack": (
        "Excellent! As a full-stack candidate, let's explore both your frontend "
        "and backend capabilities. What's your preferred tech stack and why?"
    ),
}

TECHNICAL_QUESTIONS: Dict[SkillLevel, List[str]] = {
    SkillLevel.BEGINNER: [
        "Let's start with a simple algorithm. Can you explain how you would reverse a string?",
        "What's the difference between let, const, and var in JavaScript?",
        "How would you find the largest number in an array?",
    ],
    SkillLevel.INTERMEDIATE: [
        "Can you implement a function to find the first non-repeating character in a string?",
        "Explain the concept of closures and provide an example.",
        "How would you design a simple cache with TTL (time-to-live)?",
    ],
    SkillLevel.ADVANCED: [
        "Design and implement a LRU cache with O(1) operations.",
        "Explain how you would handle race conditions in a distributed system.",
        "Implement a function to serialize and deserialize a binary tree.",
    ],
}

BEHAVIORAL_QUESTIONS: List[str] = [
    "Tell me about a time when you had to work with a difficult team member. "
    "How did you handle the situation?",
    "Describe a challenging project you worked on. What made it challenging "
    "and how did you overcome the obstacles?",
    "Can you give me an example of when you had to learn a new technology "
    "quickly? How did you approach it?",
    "Tell me about a time when you disagreed with a technical decision made "
    "by your team or manager.",
    "Describe a situation where you had to debug a complex issue. Walk me "
    "through your process.",
]

SYSTEM_DESIGN_PROMPTS: List[str] = [
    "Let's do a system design exercise. How would you design a URL shortener "
    "like bit.ly? Walk me through your approach.",
    "Design a chat application that can handle millions of users. What are "
    "the key components and challenges?",
    "How would you design a recommendation system for an e-commerce platform?",
    "Design a distributed cache system. What are the trade-offs you'd consider?",
    "How would you design a real-time collaborative document editor like "
    "Google Docs?",
]

COMPLEXITY_KEYWORDS = ("algorithm", "optimization", "distributed", "scalable", "architecture")

SUMMARY_STRENGTHS = [
    "Good communication skills",
    "Thoughtful approach to problem-solving",
    "Adequate technical knowledge",
]
SUMMARY_IMPROVEMENTS = [
    "Consider more edge cases in solutions",
    "Practice explaining complex concepts more clearly",
    "Work on system design fundamentals",
]
SUMMARY_RECOMMENDATIONS = [
    "Practice more algorithm problems on LeetCode",
    "Study system design patterns",
    "Work on explaining your thought process clearly",
    "Practice behavioral questions using the STAR method",
]


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def normalize_interview_type(interview_type: Optional[str]) -> str:
    """Map any value outside the known interview types to "general"."""
    value = (interview_type or "").strip().lower()
    return value if value in INTRODUCTION_PROMPTS else "general"


def count_complexity_keywords(responses: Sequence[str]) -> int:
    """Total case-insensitive occurrences of COMPLEXITY_KEYWORDS."""
    total = 0
    for response in responses:
        text = response.lower()
        total += sum(text.count(keyword) for keyword in COMPLEXITY_KEYWORDS)
    return total


def assess_skill_level(responses: Sequence[str]) -> SkillLevel:
    """
    Keyword-density heuristic over the free-text responses so far.

    Fewer than two responses always gives INTERMEDIATE. Otherwise
    ≥3 keyword occurrences → ADVANCED, ≥1 → INTERMEDIATE, else BEGINNER.
    """
    if len(responses) < 2:
        return SkillLevel.INTERMEDIATE

    occurrences = count_complexity_keywords(responses)
    if occurrences >= 3:
        return SkillLevel.ADVANCED
    if occurrences >= 1:
        return SkillLevel.INTERMEDIATE
    return SkillLevel.BEGINNER


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _score(value: float) -> int:
    return min(10, max(1, _round_half_up(value)))


def analyze_performance(responses: Sequence[str]) -> PerformanceSummary:
    """
    Score an interview from response count (n) and average length (L).

    Every score is rounded half-up and clamped to [1, 10].
    """
    n = len(responses)
    avg_len = (sum(len(r) for r in responses) / n) if n else 0.0

    return PerformanceSummary(
        overall_rating=_score(n * 1.5 + avg_len / 100),
        strengths=list(SUMMARY_STRENGTHS),
        improvements=list(SUMMARY_IMPROVEMENTS),
        technical=TechnicalScores(
            problem_solving=_score(n * 2),
            code_quality=_score(avg_len / 50),
            system_thinking=_score(n * 1.8),
        ),
        communication=CommunicationScores(
            clarity=_score(avg_len / 80),
            structure=_score(n * 1.7),
            engagement=_score(n * 1.6),
        ),
        recommendations=list(SUMMARY_RECOMMENDATIONS),
    )


def render_feedback(summary: PerformanceSummary) -> str:
    """Markdown feedback message for a finished interview."""

    def bullets(items: Sequence[str]) -> str:
        return "\n".join(f"• {item}" for item in items)

    return (
        "## Interview Summary\n\n"
        f"**Overall Performance:** {summary.overall_rating}/10\n\n"
        "### Strengths:\n"
        f"{bullets(summary.strengths)}\n\n"
        "### Areas for Improvement:\n"
        f"{bullets(summary.improvements)}\n\n"
        "### Technical Skills Assessment:\n"
        f"- Problem Solving: {summary.technical.problem_solving}/10\n"
        f"- Code Quality: {summary.technical.code_quality}/10\n"
        f"- System Thinking: {summary.technical.system_thinking}/10\n\n"
        "### Communication Skills:\n"
        f"- Clarity: {summary.communication.clarity}/10\n"
        f"- Structure: {summary.communication.structure}/10\n"
        f"- Engagement: {summary.communication.engagement}/10\n\n"
        "### Recommendations:\n"
        f"{bullets(summary.recommendations)}\n\n"
        "Great job completing the mock interview! Remember, practice makes "
        "perfect. Feel free to start another session anytime."
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass
class StepResult:
    """
    Outcome of one advance() call.

    Attributes
    ----------
    message:
        Assistant text for this step (question or feedback summary).
    step:
        The step that produced the message.
    next_step:
        The step the next call will run, or None once completed.
    state:
        Workflow state after the step (a new object unless unchanged).
    metadata:
        questionType / difficulty / interviewComplete hints.
    """
    message: str
    step: WorkflowStep
    next_step: Optional[WorkflowStep]
    state: WorkflowState
    metadata: Dict[str, Any] = field(default_factory=dict)


class WorkflowEngine:
    """
    Finite-state machine over WORKFLOW_STEPS.

    Parameters
    ----------
    rng:
        Randomness source for prompt selection. Pass random.Random(seed)
        for reproducible interviews; defaults to an unseeded generator.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def start(self, interview_type: Optional[str] = None) -> WorkflowState:
        """Fresh state positioned at the introduction step."""
        return WorkflowState(interview_type=normalize_interview_type(interview_type))

    def current_step(self, state: WorkflowState) -> Optional[WorkflowStep]:
        if state.completed or state.current_step_index >= N_STEPS:
            return None
        return WORKFLOW_STEPS[state.current_step_index]

    def advance(
        self,
        state: WorkflowState,
        response: Optional[str] = None,
    ) -> StepResult:
        """
        Record `response` (if any) and run the current step.

        The given state is never mutated. On a completed workflow this is a
        no-op that returns the stored summary and the same state object.
        """
        if state.completed:
            return self._completed_result(state)

        new_state = state.model_copy(deep=True)
        if response is not None:
            new_state.responses.append(response)

        step = WORKFLOW_STEPS[new_state.current_step_index]

        if step is WorkflowStep.INTRODUCTION:
            message, metadata = self._introduction(new_state)
        elif step is WorkflowStep.TECHNICAL_ASSESSMENT:
            message, metadata = self._technical_assessment(new_state)
        elif step is WorkflowStep.BEHAVIORAL_QUESTIONS:
            message = self.rng.choice(BEHAVIORAL_QUESTIONS)
            metadata = {"questionType": "behavioral"}
        elif step is WorkflowStep.SYSTEM_DESIGN:
            message = self.rng.choice(SYSTEM_DESIGN_PROMPTS)
            metadata = {"questionType": "system_design"}
        else:
            message, metadata = self._feedback_summary(new_state)

        new_state.current_step_index += 1
        if step is WorkflowStep.FEEDBACK_SUMMARY:
            new_state.completed = True

        next_step = self.current_step(new_state)
        logger.debug(
            "[Workflow] step=%s -> next=%s (index=%d)",
            step.value,
            next_step.value if next_step else None,
            new_state.current_step_index,
        )
        return StepResult(
            message=message,
            step=step,
            next_step=next_step,
            state=new_state,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _introduction(self, state: WorkflowState):
        interview_type = normalize_interview_type(state.interview_type)
        return INTRODUCTION_PROMPTS[interview_type], {
            "questionType": "introduction",
            "interviewType": interview_type,
        }

    def _technical_assessment(self, state: WorkflowState):
        level = assess_skill_level(state.responses)
        state.assessment_data.technical_strength = level
        question = self.rng.choice(TECHNICAL_QUESTIONS[level])
        return question, {"questionType": "technical", "difficulty": level.value}

    def _feedback_summary(self, state: WorkflowState):
        summary = analyze_performance(state.responses)
        data: AssessmentData = state.assessment_data
        data.summary = summary
        data.areas_for_improvement = list(summary.improvements)
        data.communication_style = _describe_communication(summary)
        data.problem_solving_approach = _describe_problem_solving(summary)
        return render_feedback(summary), {
            "questionType": "summary",
            "interviewComplete": True,
            "summary": summary.to_json_dict(),
        }

    def _completed_result(self, state: WorkflowState) -> StepResult:
        summary = state.assessment_data.summary
        if summary is None:
            # Completed states written by this engine always carry a summary.
            summary = analyze_performance(state.responses)
        return StepResult(
            message=render_feedback(summary),
            step=WorkflowStep.FEEDBACK_SUMMARY,
            next_step=None,
            state=state,
            metadata={
                "questionType": "summary",
                "interviewComplete": True,
                "summary": summary.to_json_dict(),
            },
        )


def _describe_communication(summary: PerformanceSummary) -> str:
    c = summary.communication
    average = (c.clarity + c.structure + c.engagement) / 3
    if average >= 7:
        return "clear and well structured"
    if average >= 4:
        return "generally clear"
    return "brief"


def _describe_problem_solving(summary: PerformanceSummary) -> str:
    t = summary.technical
    average = (t.problem_solving + t.code_quality + t.system_thinking) / 3
    if average >= 7:
        return "systematic"
    if average >= 4:
        return "methodical with gaps"
    return "needs more structure"
