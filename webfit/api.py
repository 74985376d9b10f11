"""FastAPI server exposing the fitness surface under ``/api``."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import WebFitError
from .logger import logger
from .repos import Repo, repo_factory
from .routes import FitnessApi

router = APIRouter(prefix="/api")


def get_api(request: Request) -> FitnessApi:
    return request.app.state.api


@router.get("/health")
def health(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.health()


@router.get("/workouts")
def list_workouts(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.list_workouts()


@router.post("/workouts")
def create_workout(payload: dict[str, Any] = Body(...), api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.create_workout(payload)


@router.delete("/workouts/{workout_id}")
def delete_workout(workout_id: str, api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.delete_workout(workout_id)


@router.post("/health-metrics")
def health_metrics(payload: dict[str, Any] = Body(...), api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.health_metrics(payload)


@router.get("/goals")
def list_goals(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.list_goals()


@router.post("/goals")
def create_goal(payload: dict[str, Any] = Body(...), api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.create_goal(payload)


@router.put("/goals/{goal_id}")
def update_goal(goal_id: str, payload: dict[str, Any] = Body(...),
                api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.update_goal(goal_id, payload)


@router.delete("/goals/{goal_id}")
def delete_goal(goal_id: str, api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.delete_goal(goal_id)


@router.get("/profile")
def get_profile(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.get_profile()


@router.post("/profile")
def save_profile(payload: dict[str, Any] = Body(...), api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.save_profile(payload)


@router.get("/exercises")
def list_exercises(
    category: str = Query("all"),
    difficulty: str = Query("all"),
    api: FitnessApi = Depends(get_api),
) -> dict[str, Any]:
    return api.list_exercises(category=category, difficulty=difficulty)


@router.get("/body-measurements")
def list_measurements(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.list_measurements()


@router.post("/body-measurements")
def add_measurement(payload: dict[str, Any] = Body(...), api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.add_measurement(payload)


@router.get("/stats")
def dashboard_stats(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.dashboard_stats()


@router.get("/progress")
def progress(api: FitnessApi = Depends(get_api)) -> dict[str, Any]:
    return api.progress()


def create_app(repo: Repo | None = None) -> FastAPI:
    """Build the app. Without ``repo`` the configured store is opened at startup
    and closed at shutdown; an injected repo is left for the caller to close."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = repo is None
        store = repo_factory() if owned else repo
        app.state.api = FitnessApi(store)
        logger.info("WebFit API started")
        try:
            yield
        finally:
            if owned:
                store.close()
            logger.info("WebFit API stopped")

    app = FastAPI(title="WebFit Tracker", lifespan=lifespan)
    if repo is not None:
        # available without running the lifespan (e.g. TestClient used without `with`)
        app.state.api = FitnessApi(repo)
    app.include_router(router)

    @app.exception_handler(WebFitError)
    async def webfit_error_handler(request: Request, exc: WebFitError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        return JSONResponse(status_code=400, content={"error": first.get("msg", "Invalid request")})

    return app


def main() -> None:
    import dotenv
    import uvicorn

    from .config import server_config

    dotenv.load_dotenv()
    cfg = server_config()
    uvicorn.run(create_app(), host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
