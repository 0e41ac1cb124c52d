"""FastAPI server for Lungcat."""

from __future__ import annotations

import os
from typing import Optional, Dict, Any, List

from fastapi import FastAPI, HTTPException, Header, Depends
from pydantic import BaseModel, Field

from lungcat import (
    AIOrchestrator,
    ServedContent,
    UserProfile,
    build_orchestrator,
)


def _get_api_key() -> Optional[str]:
    return os.getenv("LUNGCAT_API_KEY")


def _require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    api_key = _get_api_key()
    if api_key and x_api_key != api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")


_orchestrator: Optional[AIOrchestrator] = None


def _get_orchestrator() -> AIOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        try:
            _orchestrator = build_orchestrator()
        except ValueError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        _orchestrator.initialize()
    return _orchestrator


app = FastAPI(title="Lungcat API", version="1.0.0")


class UserPayload(BaseModel):
    id: str = Field(..., min_length=1)
    display_name: str = ""
    streak: int = Field(0, ge=0)
    total_days: int = Field(0, ge=0)
    level: int = Field(1, ge=1)
    xp: int = Field(0, ge=0)
    is_premium: bool = False
    badges: List[str] = Field(default_factory=list)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            display_name=self.display_name,
            streak=self.streak,
            total_days=self.total_days,
            level=self.level,
            xp=self.xp,
            is_premium=self.is_premium,
            badges=list(self.badges),
        )


class MotivationRequest(BaseModel):
    user: UserPayload
    trigger_type: str = Field("daily", pattern="^(daily|milestone)$")
    milestone_days: Optional[int] = Field(None, ge=1)
    language: str = Field("id", pattern="^(en|id)$")


class ContentRequest(BaseModel):
    user: UserPayload
    language: str = Field("id", pattern="^(en|id)$")


class TextResponse(BaseModel):
    text: str
    source: str
    reason: str
    cost: float


class MissionsResponse(BaseModel):
    missions: List[Dict[str, Any]]
    source: str
    reason: str
    cost: float


def _text_response(served: ServedContent) -> TextResponse:
    return TextResponse(
        text=served.text,
        source=served.source.value,
        reason=served.reason,
        cost=served.cost,
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/motivation", response_model=TextResponse, dependencies=[Depends(_require_api_key)])
def motivation(req: MotivationRequest) -> TextResponse:
    trigger_data = {"milestone_days": req.milestone_days} if req.milestone_days else None
    served = _get_orchestrator().serve_motivation(
        req.user.to_profile(),
        trigger_type=req.trigger_type,
        trigger_data=trigger_data,
        language=req.language,
    )
    return _text_response(served)


@app.post("/missions", response_model=MissionsResponse, dependencies=[Depends(_require_api_key)])
def missions(req: ContentRequest) -> MissionsResponse:
    served = _get_orchestrator().serve_missions(req.user.to_profile(), language=req.language)
    return MissionsResponse(
        missions=[m.to_dict() for m in served.missions],
        source=served.source.value,
        reason=served.reason,
        cost=served.cost,
    )


@app.post("/tip", response_model=TextResponse, dependencies=[Depends(_require_api_key)])
def tip(req: ContentRequest) -> TextResponse:
    served = _get_orchestrator().serve_tip(req.user.to_profile(), language=req.language)
    return _text_response(served)


@app.get("/usage/{user_id}", dependencies=[Depends(_require_api_key)])
def usage(user_id: str) -> Dict[str, Any]:
    return _get_orchestrator().get_usage_stats(user_id)


@app.post("/admin/reset-monthly", dependencies=[Depends(_require_api_key)])
def reset_monthly() -> Dict[str, Any]:
    orchestrator = _get_orchestrator()
    orchestrator.reset_monthly_usage()
    state = orchestrator.budget.get_state()
    return state.to_dict()
