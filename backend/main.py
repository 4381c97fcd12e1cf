# main.py
# FastAPI app exposing meal recommendations and the notify trigger

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from collaborators import SourceUnavailableError, load_seed
from config import AppConfig
from models import (
    MEAL_TYPES,
    NotifyData,
    NotifyResponse,
    RecommendationsData,
    RecommendationsResponse,
)
from notifier import RecommendationNotifier
from providers.places import PlacesClient
from providers.push import LogNotificationDelivery, WebhookNotificationDelivery
from providers.weather import FixedWeatherFallback, SeededWeatherFallback, WeatherClient
from recommender import RecommendationService
from scheduler import MealScheduler

INVALID_MEAL_TYPE = "Invalid meal type. Must be breakfast, lunch, or dinner"

config = AppConfig()

# logging
logging.basicConfig(level=config.log_level.upper())
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
log = logging.getLogger("mealspot")

app = FastAPI(title="Meal Spot Recommender API", version="0.1.0")
# CORS origins
FRONTEND_LOCAL = "http://localhost:3000"

origins = [FRONTEND_LOCAL]
if config.frontend_prod:
    origins.append(config.frontend_prod)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_services(cfg: AppConfig) -> tuple[RecommendationService, RecommendationNotifier, MealScheduler]:
    """Wire adapters and collaborators once per process; all are safe to share."""
    locations, catalog, history = load_seed(cfg.seed_path)
    if cfg.weather_fallback_seed is None:
        fallback = FixedWeatherFallback()
    else:
        fallback = SeededWeatherFallback(cfg.weather_fallback_seed)

    recommender = RecommendationService(
        locations=locations,
        catalog=catalog,
        places=PlacesClient(cfg.google_maps_api_key, timeout_s=cfg.places_timeout_s),
        weather=WeatherClient(cfg.openweather_api_key, fallback=fallback, timeout_s=cfg.weather_timeout_s),
        history=history,
        weather_timeout_s=cfg.weather_timeout_s,
        places_timeout_s=cfg.places_timeout_s,
        catalog_timeout_s=cfg.catalog_timeout_s,
        min_score=cfg.min_score,
    )
    if cfg.push_webhook_url:
        delivery = WebhookNotificationDelivery(cfg.push_webhook_url)
    else:
        delivery = LogNotificationDelivery()
    notifier = RecommendationNotifier(
        recommender, delivery, max_distance_m=cfg.default_max_distance_m, limit=cfg.notify_limit
    )
    scheduler = MealScheduler(notifier, locations, timezone=cfg.scheduler_timezone)
    return recommender, notifier, scheduler


_recommender, _notifier, _scheduler = build_services(config)


def get_recommender() -> RecommendationService:
    return _recommender


def get_notifier() -> RecommendationNotifier:
    return _notifier


# identity comes from the upstream auth layer
def current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id


def validate_meal_type(meal_type: str) -> str:
    if meal_type not in MEAL_TYPES:
        raise HTTPException(status_code=400, detail=INVALID_MEAL_TYPE)
    return meal_type


# global JSON error handling
# - HTTPException -> { "message": <detail> }
# - bad query/path parameters -> 422 { "message": "Invalid request parameters: <fields>" }
# - storage faults and anything else -> 500 { "message": "Internal server error" }
@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    log.warning("HTTP %s: %s", exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(str(err["loc"][-1]) for err in exc.errors())
    log.warning("invalid request parameters: %s", fields)
    return JSONResponse(status_code=422, content={"message": f"Invalid request parameters: {fields}"})


@app.exception_handler(SourceUnavailableError)
async def source_error_handler(request: Request, exc: SourceUnavailableError):
    log.error("source unavailable: %s", exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # log stack once. do not leak details to client
    log.exception("Unhandled exception")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/recommendations/{meal_type}", response_model=RecommendationsResponse)
async def get_recommendations(
    meal_type: str,
    max_distance: Optional[int] = Query(None, alias="maxDistance"),
    limit: Optional[int] = Query(None),
    user_id: str = Depends(current_user_id),
    recommender: RecommendationService = Depends(get_recommender),
):
    """Ranked venues for the meal near the caller's last known location."""
    meal_type = validate_meal_type(meal_type)
    recs = await recommender.generate_recommendations(
        user_id,
        meal_type,
        max_distance if max_distance is not None else config.default_max_distance_m,
        limit if limit is not None else config.default_limit,
    )
    return RecommendationsResponse(
        message=f"{meal_type} recommendations retrieved successfully",
        data=RecommendationsData(meal_type=meal_type, count=len(recs), recommendations=recs),
    )


@app.post(
    "/recommendations/notify/{meal_type}",
    response_model=NotifyResponse,
    responses={204: {"description": "Nothing to recommend, no notification sent"}},
)
async def notify_recommendation(
    meal_type: str,
    user_id: str = Depends(current_user_id),
    notifier: RecommendationNotifier = Depends(get_notifier),
):
    meal_type = validate_meal_type(meal_type)
    sent = await notifier.send_recommendation_notification(user_id, meal_type)
    if not sent:
        # 204 carries no body
        return Response(status_code=204)
    return NotifyResponse(
        message=f"{meal_type} recommendation notification sent successfully",
        sent=True,
        data=NotifyData(meal_type=meal_type, notification_sent=True),
    )


@app.get("/health")
def health():
    return {"ok": True}


@app.on_event("startup")
async def start_scheduler():
    if config.scheduler_enabled:
        _scheduler.start()


@app.on_event("shutdown")
async def stop_scheduler():
    _scheduler.shutdown()
