import asyncio
import logging
from enum import Enum

import motor.motor_asyncio

# Set up logger
logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "paint-contractor"
CONTACTS_COLLECTION = "contacts"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def mask_uri(uri: str) -> str:
    """Mask the password in a connection string for logging"""
    masked_uri = uri
    if '@' in uri and ':' in uri:
        parts = uri.split('@')
        if len(parts) > 1:
            credentials_part = parts[0]
            if ':' in credentials_part:
                user_pass = credentials_part.split('://')[-1]
                if ':' in user_pass:
                    user, password = user_pass.split(':', 1)
                    masked_credentials = f"{user}:{'*' * len(password)}"
                    masked_uri = uri.replace(user_pass, masked_credentials)
    return masked_uri


class MongoConnection:
    """
    Process-wide handle on the primary store.

    The client is created once; ``connect`` and ``probe`` ping the server and
    move ``state`` between connecting / connected / disconnected. Only the
    connected state is usable by the contact store.
    """

    def __init__(
        self,
        uri: str,
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 45000,
        client_factory=motor.motor_asyncio.AsyncIOMotorClient,
    ):
        self.uri = uri
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self._client_factory = client_factory
        self.client = None
        self._state = ConnectionState.CONNECTING

    @classmethod
    def from_settings(cls, settings):
        if not settings.mongodb_uri:
            logger.warning("⚠️ MONGODB_URI not set, using default local MongoDB")
        return cls(
            settings.effective_mongo_uri,
            server_selection_timeout_ms=settings.mongo_server_selection_timeout_ms,
            socket_timeout_ms=settings.mongo_socket_timeout_ms,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def _set_state(self, new_state: ConnectionState):
        if new_state != self._state:
            logger.info(f"MongoDB connection state: {self._state.value} -> {new_state.value}")
        self._state = new_state

    def _ensure_client(self):
        if self.client is None:
            logger.info(f"MongoDB URI configured: {mask_uri(self.uri)}")
            self.client = self._client_factory(
                self.uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                connectTimeoutMS=self.server_selection_timeout_ms,
                socketTimeoutMS=self.socket_timeout_ms,
                tz_aware=True,
            )
        return self.client

    def get_database(self):
        """Returns the database named in the URI, or the default one"""
        return self._ensure_client().get_default_database(default=DEFAULT_DATABASE_NAME)

    def get_collection(self, name: str = CONTACTS_COLLECTION):
        return self.get_database()[name]

    async def _ping(self) -> bool:
        try:
            client = self._ensure_client()
            await client.admin.command("ping")
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"⚠️ MongoDB ping failed: {str(e)}")
            return False

    async def connect(self) -> bool:
        """Initial connection attempt. Never raises; the outcome is the new state."""
        self._set_state(ConnectionState.CONNECTING)
        if await self._ping():
            self._set_state(ConnectionState.CONNECTED)
            logger.info(f"✅ Connected to MongoDB database: {self.get_database().name}")
            return True

        self._set_state(ConnectionState.DISCONNECTED)
        logger.warning("📝 MongoDB unavailable, contact submissions will use fallback storage")
        return False

    async def probe(self) -> bool:
        """
        Re-check connectivity.

        Returns:
            bool: True if the connection became usable during this probe
        """
        was_connected = self.is_connected
        reachable = await self._ping()
        self._set_state(ConnectionState.CONNECTED if reachable else ConnectionState.DISCONNECTED)
        return reachable and not was_connected

    def close(self):
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connections closed successfully")
        self._set_state(ConnectionState.DISCONNECTED)

