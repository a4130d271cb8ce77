import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.db import engine, Base, SessionLocal

from app.models.user import User
from app.models.ride import Ride
from app.models.partner import Partner
from app.models.reward import Reward
from app.models.redemption import Redemption

from app.routes.users import router as users_router
from app.routes.rides import router as rides_router
from app.routes.partners import router as partners_router
from app.routes.rewards import router as rewards_router

from app.services.catalog_service import seed_sample_catalog
from app.services.errors import RewardsError, StorageFailure


logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
]

app = FastAPI(title="Sykle Rewards")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=(
        [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
        or DEFAULT_CORS_ORIGINS
    ),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Errors ───────────────────────────────────────────────────────
@app.exception_handler(RewardsError)
def handle_rewards_error(request: Request, exc: RewardsError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
def handle_storage_error(request: Request, exc: SQLAlchemyError):
    logger.exception("unhandled storage error", extra={"path": request.url.path})
    failure = StorageFailure()
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)

    if (os.getenv("SEED_SAMPLE_DATA") or "").lower() in {"1", "true", "yes"}:
        db = SessionLocal()
        try:
            seed_sample_catalog(db)
        finally:
            db.close()


app.include_router(users_router)
app.include_router(rides_router)
app.include_router(partners_router)
app.include_router(rewards_router)


@app.get("/")
def read_root():
    return {"message": "Sykle Rewards API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001, reload=True)
