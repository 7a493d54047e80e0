# app/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import get_settings
import certifi

logger = logging.getLogger(__name__)

settings = get_settings()

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


def get_db_or_none() -> AsyncIOMotorDatabase | None:
    """Same as get_db() but lets the catalog degrade instead of failing the request."""
    return _db


async def connect():
    """
    Create Motor client with explicit CA bundle.
    A failed startup ping does not crash the app: keep a lazy client so
    requests can retry once the cluster is reachable.
    """
    global _client, _db

    def _new_client() -> AsyncIOMotorClient:
        kwargs = dict(
            uuidRepresentation="standard",
            serverSelectionTimeoutMS=6000,
            connectTimeoutMS=6000,
        )
        if settings.MONGO_URI.startswith("mongodb+srv://"):
            kwargs.update(tls=True, tlsCAFile=certifi.where())
        return AsyncIOMotorClient(settings.MONGO_URI, **kwargs)

    try:
        _client = _new_client()
        _db = _client[settings.MONGO_DB]
        await _client.admin.command("ping")
        logger.info("Mongo connected (ping ok)")
    except Exception as e:
        logger.warning("Mongo ping at startup failed: %s", e)
        try:
            # keep a lazy client; first real query will attempt to connect again
            _client = _new_client()
            _db = _client[settings.MONGO_DB]
            logger.warning("Mongo will attempt lazy connection on first query")
        except Exception as e2:
            # catalog lookups will report the source as unavailable
            _client = None
            _db = None
            logger.error("Mongo client init failed: %s", e2)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
