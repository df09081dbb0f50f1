"""FastAPI application: REST endpoints for recording a poker hand."""

import hmac
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from handflow import hand_manager
from handflow.cleanup import cleanup_stale_hands, hand_cleaner
from handflow.models import (
    ActionRequest,
    BoardSlotRequest,
    CreateHandRequest,
    CreateHandResponse,
    HoleCardsRequest,
    ShowdownRecord,
    WinnerRequest,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    hand_cleaner.start()
    yield
    hand_cleaner.stop()


app = FastAPI(title="Hand Flow API", lifespan=lifespan)

# ---------- Configuration ----------

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "1") != "0"
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests for this hand service, try again shortly."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def verify_admin(authorization: str | None = Header(None)):
    """Require `Authorization: Bearer <ADMIN_PASSWORD>`."""
    if not ADMIN_PASSWORD:
        raise HTTPException(
            status_code=503,
            detail="Admin endpoints are disabled until ADMIN_PASSWORD is set.",
        )
    expected = f"Bearer {ADMIN_PASSWORD}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Admin password rejected")


# ---------- Hand endpoints ----------


@app.post("/api/hands", response_model=CreateHandResponse)
@limiter.limit("20/minute")
async def create_hand(request: Request, req: CreateHandRequest):
    code, view = await hand_manager.create_hand(req)
    return CreateHandResponse(code=code, hand=view)


@app.get("/api/hands/{code}")
@limiter.limit("120/minute")
async def get_hand(request: Request, code: str):
    view = await hand_manager.get_hand_view(code.upper())
    if view is None:
        raise HTTPException(status_code=404, detail="Hand not found")
    return view


@app.get("/api/hands/{code}/random_cards")
@limiter.limit("120/minute")
async def random_cards(request: Request, code: str, n: int = Query(1, ge=1, le=52)):
    """Draw cards not yet used anywhere in the hand."""
    try:
        cards = await hand_manager.random_cards(code.upper(), n)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"cards": [c.to_dict() for c in cards]}


@app.post("/api/hands/{code}/hole_cards")
@limiter.limit("60/minute")
async def confirm_hole_cards(request: Request, code: str, req: HoleCardsRequest):
    try:
        return await hand_manager.confirm_hole_cards(code.upper(), *req.cards)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/hands/{code}/action")
@limiter.limit("120/minute")
async def commit_action(request: Request, code: str, req: ActionRequest):
    """Apply fold, check, call, bet, raise, allin or straddle for the current actor."""
    try:
        return await hand_manager.commit_action(code.upper(), req.kind, req.amount)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.put("/api/hands/{code}/board")
@limiter.limit("120/minute")
async def update_board(request: Request, code: str, req: BoardSlotRequest):
    try:
        return await hand_manager.update_board(
            code.upper(), req.street, req.slot, req.card
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/hands/{code}/board/confirm")
@limiter.limit("60/minute")
async def confirm_board(request: Request, code: str):
    try:
        return await hand_manager.confirm_board(code.upper())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/hands/{code}/showdown")
@limiter.limit("60/minute")
async def commit_showdown(request: Request, code: str, req: ShowdownRecord):
    """Record the next player in the reveal queue showing or mucking."""
    try:
        return await hand_manager.commit_showdown(code.upper(), req)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/hands/{code}/winner")
@limiter.limit("60/minute")
async def confirm_winner(request: Request, code: str, req: WinnerRequest):
    try:
        return await hand_manager.confirm_winner(code.upper(), req.player_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/hands/{code}/back")
@limiter.limit("120/minute")
async def go_back(request: Request, code: str):
    """Undo the last committed step."""
    try:
        return await hand_manager.go_back(code.upper())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.delete("/api/hands/{code}")
@limiter.limit("30/minute")
async def discard_hand(request: Request, code: str):
    try:
        await hand_manager.discard_hand(code.upper())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


# ---------- Admin ----------


@app.post("/api/admin/cleanup")
@limiter.limit("10/minute")
async def admin_cleanup(request: Request, _=Depends(verify_admin)):
    """Manually trigger stale-hand cleanup. Returns deleted and kept hand codes."""
    result = await cleanup_stale_hands()
    logger.info("Manual cleanup removed %d hand(s)", len(result["deleted"]))
    return result
