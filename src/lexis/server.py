import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from lexis.application.due_selector import ReviewWindow
from lexis.application.review_service import ReviewService
from lexis.application.utils.review_time import format_time_until_review
from lexis.consts import VERSION
from lexis.domain.exceptions import (
    InvalidGradeError,
    InvalidReviewStateError,
    WordNotTrackedError,
)
from lexis.domain.models import ReviewState

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("lexis.server")

_service: ReviewService | None = None


def get_service() -> ReviewService:
    """Build the review service from resolved config on first use."""
    global _service
    if _service is None:
        from lexis.application.config import resolve_config
        from lexis.application.factory import get_review_service

        _service = get_review_service(resolve_config())
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Lexis Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Lexis Server shutting down...")


app = FastAPI(
    title="Lexis Server",
    description="Spaced-repetition scheduling for vocabulary review.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReviewStateResponse(BaseModel):
    word_id: str
    interval: float
    ease_factor: float
    review_count: int
    next_review_date: datetime | None
    next_review_label: str | None
    last_review_date: datetime | None
    status: str
    success_rate: float

    @classmethod
    def from_state(cls, state: ReviewState) -> "ReviewStateResponse":
        return cls(
            word_id=state.word_id,
            interval=state.interval,
            ease_factor=state.ease_factor,
            review_count=state.review_count,
            next_review_date=state.next_review_date,
            next_review_label=format_time_until_review(state.next_review_date),
            last_review_date=state.last_review_date,
            status=state.status.value,
            success_rate=state.success_rate,
        )


class StartLearningRequest(BaseModel):
    word_ids: list[str] = Field(min_length=1)


class StartLearningResponse(BaseModel):
    started: int


class DueResponse(BaseModel):
    count: int
    word_ids: list[str]


class ReviewRequest(BaseModel):
    word_id: str
    # Accepts 0-3 or a grade name such as "perfect"
    grade: int | str


class StatsResponse(BaseModel):
    streak: int
    this_week: int
    last_week: int
    due: int
    total_mastery: int
    mastery_levels: dict[str, int]
    total_reviews: int


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/users/{user_id}/words", response_model=StartLearningResponse)
async def start_learning(
    user_id: str,
    req: StartLearningRequest,
    service: ReviewService = Depends(get_service),
):
    started = await service.start_learning(user_id, req.word_ids)
    return StartLearningResponse(started=started)


@app.get("/users/{user_id}/due", response_model=DueResponse)
async def get_due(
    user_id: str,
    limit: int | None = Query(default=None, ge=0),
    service: ReviewService = Depends(get_service),
):
    """
    Due word ids in session order. Without a limit the configured
    review_limit applies; 0 lists every due word.
    """
    word_ids = await service.get_due_words(user_id, limit=limit)
    count = await service.get_due_count(user_id)
    return DueResponse(count=count, word_ids=word_ids)


@app.post("/users/{user_id}/reviews", response_model=ReviewStateResponse)
async def submit_review(
    user_id: str,
    req: ReviewRequest,
    service: ReviewService = Depends(get_service),
):
    """
    Grade one word and return its new scheduling state.
    """
    try:
        state = await service.process_review(user_id, req.word_id, req.grade)
    except (InvalidGradeError, InvalidReviewStateError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ReviewStateResponse.from_state(state)


@app.get("/users/{user_id}/stats", response_model=StatsResponse)
async def get_stats(user_id: str, service: ReviewService = Depends(get_service)):
    weekly = await service.get_weekly_stats(user_id)
    mastery = await service.get_mastery(user_id)
    return StatsResponse(
        streak=await service.get_streak(user_id),
        this_week=weekly.this_week,
        last_week=weekly.last_week,
        due=await service.get_due_count(user_id),
        total_mastery=mastery.total_mastery,
        mastery_levels=mastery.levels,
        total_reviews=mastery.total_reviews,
    )


@app.get("/users/{user_id}/windows/{window}", response_model=list[ReviewStateResponse])
async def get_window(
    user_id: str,
    window: ReviewWindow,
    service: ReviewService = Depends(get_service),
):
    states = await service.list_window(user_id, window)
    return [ReviewStateResponse.from_state(s) for s in states]


@app.post("/users/{user_id}/words/{word_id}/archive", response_model=ReviewStateResponse)
async def archive_word(user_id: str, word_id: str, service: ReviewService = Depends(get_service)):
    try:
        state = await service.archive_word(user_id, word_id)
    except WordNotTrackedError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ReviewStateResponse.from_state(state)


@app.post("/users/{user_id}/words/{word_id}/restore", response_model=ReviewStateResponse)
async def restore_word(user_id: str, word_id: str, service: ReviewService = Depends(get_service)):
    try:
        state = await service.restore_word(user_id, word_id)
    except WordNotTrackedError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ReviewStateResponse.from_state(state)
