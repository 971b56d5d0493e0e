import logging
import sys
import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt

from mnemos.application.config import resolve_config
from mnemos.application.service import LearningService
from mnemos.consts import VERSION
from mnemos.domain.errors import MnemosError
from mnemos.infrastructure.schemas import (
    ItemStateSchema,
    ResponseSchema,
    ReviewContextSchema,
    SessionItemSchema,
)
from mnemos.infrastructure.serialization import (
    plan_to_dict,
    profile_to_dict,
    state_to_dict,
    to_plain,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("mnemos.server")

T = TypeVar("T")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"mnemos server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("mnemos server shutting down...")


app = FastAPI(
    title="mnemos",
    description="Stateless scheduling, forecasting and ability estimation API.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


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


# Records travel in the same shape as the record files.
class ReviewRequest(BaseModel):
    state: ItemStateSchema | None = None  # None = new item
    quality: StrictInt
    context: ReviewContextSchema | None = None
    seed: int | None = None


class StateRequest(BaseModel):
    state: ItemStateSchema | None = None


class ForecastRequest(StateRequest):
    days: int = Field(default=30, ge=0)


class AbilityRequest(BaseModel):
    responses: list[ResponseSchema] = []
    subject_id: str | None = None
    item_difficulty: StrictFloat | None = None  # adds an accuracy prediction


class FeedbackRequest(AbilityRequest):
    correct: StrictBool
    hints_used: int = Field(default=0, ge=0)


class SessionRequest(BaseModel):
    items: list[SessionItemSchema] = []
    max_time_minutes: float | None = None  # None = configured session length
    responses: list[ResponseSchema] | None = None
    subject_id: str | None = None
    due_only: bool = False


class SummaryRequest(BaseModel):
    states: list[ItemStateSchema | None] = []


def _service(seed: int | None = None) -> LearningService:
    return LearningService.from_config(resolve_config({"seed": seed}))


def _call(action: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except (MnemosError, ValueError) as e:
        logger.info(f"{action} rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error(f"{action} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


def _state(schema: ItemStateSchema | None):
    return schema.to_domain() if schema is not None else None


@app.post("/review")
async def review(req: ReviewRequest):
    """
    Schedule an item after a review and return its new state.
    """

    def run():
        context = req.context.to_domain() if req.context is not None else None
        updated = _service(req.seed).schedule_review(_state(req.state), req.quality, context)
        return state_to_dict(updated)

    return _call("Review", run)


@app.post("/stats")
async def stats(req: StateRequest):
    def run():
        if req.state is None:
            raise MnemosError("stats need an item state")
        state = req.state.to_domain()
        return to_plain({"status": state.status, **vars(_service().compute_stats(state))})

    return _call("Stats", run)


@app.post("/forecast")
async def forecast(req: ForecastRequest):
    def run():
        points = _service().predict_performance(_state(req.state), req.days)
        return [vars(p) for p in points]

    return _call("Forecast", run)


@app.post("/ability")
async def ability(req: AbilityRequest):
    """
    Estimate ability, with the difficulty to serve next and recommendations.
    """

    def run():
        service = _service()
        profile = service.estimate_ability([r.to_domain() for r in req.responses], req.subject_id)
        data = profile_to_dict(profile)
        data["guidance"] = to_plain(vars(service.guidance(profile)))
        if req.item_difficulty is not None:
            prediction = service.predict_accuracy(profile, req.item_difficulty)
            data["prediction"] = vars(prediction)
        return data

    return _call("Ability estimate", run)


@app.post("/feedback")
async def feedback(req: FeedbackRequest):
    def run():
        service = _service()
        profile = service.estimate_ability([r.to_domain() for r in req.responses], req.subject_id)
        return to_plain(vars(service.feedback(profile, req.correct, req.hints_used)))

    return _call("Feedback", run)


@app.post("/session")
async def session(req: SessionRequest):
    """
    Compose a study session. With responses, new items are ordered by
    closeness to the learner's target difficulty.
    """

    def run():
        config = resolve_config()
        service = LearningService.from_config(config)
        items = [i.to_domain() for i in req.items]
        profile = None
        if req.responses is not None:
            responses = [r.to_domain() for r in req.responses]
            profile = service.estimate_ability(responses, req.subject_id)
        budget = req.max_time_minutes
        if budget is None:
            budget = config.session_minutes
        plan = service.compose_session(items, budget, profile, due_only=req.due_only)
        return plan_to_dict(plan)

    return _call("Session", run)


@app.post("/summary")
async def summary(req: SummaryRequest):
    def run():
        return vars(_service().summarize([_state(s) for s in req.states]))

    return _call("Summary", run)
