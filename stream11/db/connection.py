"""
MongoDB async connection module using Motor.

Provides connection lifecycle management and health checks. There is no
module-level connection: the owner (the FastAPI lifespan or a CLI command)
creates a DatabaseConnection, opens it, hands its database to the
components that need it, and closes it on shutdown.
"""

import asyncio
from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from stream11.config.settings import MongoSettings

logger = structlog.get_logger(__name__)


class DatabaseConnection:
    """
    Manages MongoDB connection lifecycle using Motor async driver.

    Usage:
        db_conn = DatabaseConnection(settings.mongo)
        await db_conn.connect()
        db = db_conn.database
        # ... use db
        await db_conn.disconnect()

    Or as context manager:
        async with DatabaseConnection(settings.mongo) as db:
            # ... use db
    """

    def __init__(self, settings: MongoSettings) -> None:
        self.settings = settings
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Whether connect() succeeded and disconnect() was not called since."""
        return self._client is not None

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get the Motor client instance."""
        if self._client is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        if self._database is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._database

    async def connect(self) -> None:
        """
        Establish connection to MongoDB.

        Uses a lock so concurrent callers cannot open two clients.
        """
        async with self._lock:
            if self._client is not None:
                logger.debug("Already connected to MongoDB")
                return

            logger.info("Connecting to MongoDB", database=self.settings.db_name)

            client = AsyncIOMotorClient(
                self.settings.url,
                tz_aware=True,
                minPoolSize=self.settings.min_pool_size,
                maxPoolSize=self.settings.max_pool_size,
                connectTimeoutMS=self.settings.connect_timeout_ms,
                serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
                socketTimeoutMS=self.settings.socket_timeout_ms,
            )

            try:
                # Verify connection with ping
                await client.admin.command("ping")
            except Exception as e:
                logger.error("Failed to connect to MongoDB", error=str(e))
                client.close()
                raise

            self._client = client
            self._database = client[self.settings.db_name]
            logger.info("Successfully connected to MongoDB", database=self.settings.db_name)

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        async with self._lock:
            if self._client is None:
                logger.debug("No active MongoDB connection to close")
                return

            logger.info("Disconnecting from MongoDB")
            self._client.close()
            self._client = None
            self._database = None
            logger.info("Disconnected from MongoDB")

    async def health_check(self) -> dict[str, Any]:
        """
        Perform a health check on the database connection.

        Returns:
            dict with status and latency information
        """
        if self._client is None:
            return {
                "status": "disconnected",
                "healthy": False,
                "error": "No active connection",
            }

        try:
            loop = asyncio.get_running_loop()
            start = loop.time()
            await self._client.admin.command("ping")
            latency_ms = (loop.time() - start) * 1000

            server_info = await self._client.server_info()
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return {
                "status": "error",
                "healthy": False,
                "error": str(e),
            }

        return {
            "status": "connected",
            "healthy": True,
            "latency_ms": round(latency_ms, 2),
            "server_version": server_info.get("version", "unknown"),
        }

    async def __aenter__(self) -> AsyncIOMotorDatabase:
        """Async context manager entry."""
        await self.connect()
        return self.database

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()
