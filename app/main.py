import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

import model  # noqa: F401  registers tables on Base.metadata
from database import SessionLocal, engine, Base, init_mongo
from crud.booking_crud import booking_allocator
from routers.movie_router import router as movie_router
from routers.screen_router import router as screen_router
from routers.show_router import router as show_router
from routers.booking_routes import router as booking_router
from routers.payment_routes import router as payment_router
from routers.notification_router import router as notification_router
from routers.ws_router import router as ws_router
from utils.config import settings
from utils.exceptions import register_exception_handlers
from utils.middleware.logger import LoggingMiddleware, setup_logging
from utils.notification_consumer import consume_notifications

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Movie Booking API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)


async def hold_sweep_task():
    while True:
        db: Session = SessionLocal()
        try:
            count = await asyncio.to_thread(booking_allocator.release_expired_holds, db)
            logger.debug("Hold sweep released %s booking(s)", count)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Hold sweep failed")
        finally:
            db.close()
        await asyncio.sleep(settings.HOLD_SWEEP_INTERVAL_SECONDS)


@app.on_event("startup")
async def startup_event():
    if not settings.ENABLE_BACKGROUND_WORKERS:
        logger.info("Background workers disabled")
        return
    await init_mongo()
    app.state.background_tasks = [
        asyncio.create_task(consume_notifications()),
        asyncio.create_task(hold_sweep_task()),
    ]
    logger.info("Started notification consumer and hold sweep (every %ss)", settings.HOLD_SWEEP_INTERVAL_SECONDS)


@app.on_event("shutdown")
async def shutdown_event():
    tasks = getattr(app.state, "background_tasks", [])
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    if tasks:
        logger.info("Stopped %s background task(s)", len(tasks))


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(movie_router)
app.include_router(screen_router)
app.include_router(show_router)
app.include_router(booking_router)
app.include_router(payment_router)
app.include_router(notification_router)
app.include_router(ws_router)
