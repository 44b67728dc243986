from beanie import init_beanie
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from motor.motor_asyncio import AsyncIOMotorClient
from utils.config import settings


def _engine_kwargs(url: str) -> dict:
    # sqlite connections are shared with the threadpool FastAPI runs sync routes on
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

_mongo_client = None


def get_mongo_db():
    global _mongo_client
    if _mongo_client is None:
        _mongo_client = AsyncIOMotorClient(settings.MONGODB_URL)
    return _mongo_client[settings.MONGODB_DB]


async def init_mongo():
    from model.notification import Notification

    await init_beanie(
        database=get_mongo_db(),
        document_models=[Notification]
    )
