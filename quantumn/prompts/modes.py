"""Operating modes and their system prompts."""

from __future__ import annotations

from enum import StrEnum

from quantumn.prompts.system import CORE_IDENTITY

PLAN_MODE_PROMPT = """MODE=plan.
Purpose: decide the fastest safe path before changing state.
Allowed: reason, read, grep, glob, ask one clarifying question if required.
Forbidden: write/delete/mutating shell.
Output: objective, evidence, approach, risks, next action. Keep it short; no implementation until build is requested."""

BUILD_MODE_PROMPT = """MODE=build.
Purpose: implement the requested change end-to-end.
Loop: inspect -> edit -> verify -> report.
Use the smallest safe diff, repo-native patterns, targeted tests, and compact status. Respect tool policy; ask before destructive actions. Final answer: changed files, verification, residual risk."""

CHAT_MODE_PROMPT = """MODE=chat.
Answer directly. Use tools only when repo/current facts are needed. Be concise, technical, actionable, and honest about uncertainty. No filler or broad tutorials unless asked."""

ROUTER_PROMPT = """ROUTER: classify coding requests.
plan=architecture/approach/risk; build=add/fix/modify/run; chat=Q&A/explain.
Return only JSON: {"mode":"plan|build|chat","confidence":0.0-1.0,"reasoning":"short"}"""


class Mode(StrEnum):
    """How the assistant operates: planning, building or conversing."""

    PLAN = "plan"
    BUILD = "build"
    CHAT = "chat"

    @classmethod
    def parse(cls, text: str) -> Mode:
        """Parse a mode name or alias, case-insensitively."""
        key = text.lower()
        if key in ("plan", "planning"):
            return cls.PLAN
        if key in ("build", "execute", "implementation"):
            return cls.BUILD
        if key in ("chat", "converse"):
            return cls.CHAT
        raise ValueError(f"Unknown mode: {text}. Use: plan, build, or chat")


DEFAULT_MODE = Mode.CHAT

_PROMPTS = {
    Mode.PLAN: PLAN_MODE_PROMPT,
    Mode.BUILD: BUILD_MODE_PROMPT,
    Mode.CHAT: CHAT_MODE_PROMPT,
}


def get_system_prompt(mode: Mode) -> str:
    return _PROMPTS[mode]


def get_core_identity() -> str:
    return CORE_IDENTITY


def get_full_prompt(mode: Mode) -> str:
    """Core identity followed by the prompt for ``mode``."""
    return f"{CORE_IDENTITY}\n\n{get_system_prompt(mode)}"