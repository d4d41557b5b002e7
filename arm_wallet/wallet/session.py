"""
ARM Wallet Session

WalletSession is the explicit context object an application holds for one
account. It owns the in-memory StaticKeySet cache and serializes every
mutation of it behind an asyncio.Lock, so two concurrent authenticate()
calls never leave a half-populated cache.

State machine:

    UNINITIALIZED/READY/ERROR --authenticate()--> AWAITING_AUTH (cache cleared)
    AWAITING_AUTH --keys derived--> READY
    AWAITING_AUTH --vault/signer/key error--> ERROR
    AWAITING_AUTH --cancelled/timeout--> UNINITIALIZED
    any --lock()--> UNINITIALIZED

lock() is synchronous and bumps a generation counter. A load that was
already in flight when lock() ran never publishes its keys.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from ..constants import AUTH_TIMEOUT, SCAN_MAX_WORKERS
from ..crypto.keys import Signature
from ..crypto.signing import sign_digest
from ..exceptions import AuthenticationTimeout, SessionStateError, UserCancelled
from ..hierarchy import StaticKeySet
from ..logger import get_logger
from ..network.bulletin import BroadcastSink
from ..resource import Resource
from ..transfer import ReceivedTransfer, TransferPayload, scan_payloads, seal_transfer
from ..user_key import UserKey, create_user_key, import_user_key, serialize_user_key
from .sources import KeySource, StoredSeedSource

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_AUTH = "awaiting_auth"
    READY = "ready"
    ERROR = "error"


class WalletSession:
    """
    One account's keys for the lifetime of an unlocked session.

    Args:
        source: Where the static key set comes from
        auth_timeout: Seconds to wait on the vault or signer; not retried
        scan_workers: Default thread count for scan()
    """

    def __init__(
        self,
        source: KeySource,
        auth_timeout: float = AUTH_TIMEOUT,
        scan_workers: int = SCAN_MAX_WORKERS,
    ):
        self.source = source
        self.auth_timeout = auth_timeout
        self.scan_workers = scan_workers
        self._lock = asyncio.Lock()
        self._state = SessionState.UNINITIALIZED
        self._keys: Optional[StaticKeySet] = None
        self._user_key: Optional[UserKey] = None
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    def _clear(self) -> None:
        self._keys = None
        self._user_key = None

    def _require_ready(self) -> StaticKeySet:
        if self._state is not SessionState.READY or self._keys is None:
            raise SessionStateError(f"Session is {self._state.value}, authenticate first")
        return self._keys

    # ── Authentication ──────────────────────────────────────────────

    def _settle(self, generation: int, state: SessionState) -> None:
        # lock() already moved us to UNINITIALIZED
        if generation == self._generation:
            self._state = state

    async def _populate(self, load: Callable[[], Awaitable[StaticKeySet]]) -> StaticKeySet:
        """Run one key load under the lock-held AWAITING_AUTH state."""
        self._clear()
        self._state = SessionState.AWAITING_AUTH
        generation = self._generation
        try:
            keys = await asyncio.wait_for(load(), timeout=self.auth_timeout)
        except asyncio.TimeoutError:
            self._settle(generation, SessionState.UNINITIALIZED)
            logger.warning(f"Authentication via {self.source.name} timed out after {self.auth_timeout}s")
            raise AuthenticationTimeout(
                f"No answer from {self.source.name} within {self.auth_timeout}s"
            ) from None
        except (UserCancelled, AuthenticationTimeout):
            self._settle(generation, SessionState.UNINITIALIZED)
            logger.info("Authentication cancelled")
            raise
        except asyncio.CancelledError:
            self._settle(generation, SessionState.UNINITIALIZED)
            raise
        except Exception as e:
            self._settle(generation, SessionState.ERROR)
            logger.error(f"Authentication via {self.source.name} failed: {e}")
            raise

        if generation != self._generation:
            logger.info(f"Discarding keys from {self.source.name}: session was locked")
            raise SessionStateError("Session was locked while authenticating")

        self._keys = keys
        self._user_key = create_user_key(keys)
        self._state = SessionState.READY
        logger.info(f"Session ready for {keys.fingerprint()}")
        return keys

    async def authenticate(self, force: bool = False) -> StaticKeySet:
        """
        Load the static key set, reusing the cache when already READY.

        Raises:
            AuthenticationTimeout: Vault or signer did not answer in time
            UserCancelled: User dismissed the prompt
            SessionStateError: lock() was called before the keys arrived
            VaultAuthenticationError, SignerError, InvalidKeyError: Session moves to ERROR
        """
        async with self._lock:
            if self._state is SessionState.READY and self._keys is not None and not force:
                return self._keys
            return await self._populate(self.source.load)

    async def create_account(self) -> StaticKeySet:
        """
        Sign up: generate and store a new master seed, then unlock with it.

        Raises:
            SessionStateError: If the key source does not store seeds
        """
        if not isinstance(self.source, StoredSeedSource):
            raise SessionStateError(f"Cannot create an account with a {self.source.name} source")
        async with self._lock:
            return await self._populate(self.source.create_account)

    def lock(self) -> None:
        """Drop all cached keys, including any an in-flight authenticate() would store."""
        self._generation += 1
        self._clear()
        self._state = SessionState.UNINITIALIZED
        logger.info("Session locked")

    # ── Keys ────────────────────────────────────────────────────────

    @property
    def static_keys(self) -> StaticKeySet:
        return self._require_ready()

    @property
    def user_key(self) -> UserKey:
        self._require_ready()
        return self._user_key

    def share_user_key(self) -> str:
        """This account's User Key as a base64 string."""
        return serialize_user_key(self.user_key)

    @staticmethod
    def import_user_key(serialized: str) -> UserKey:
        """Parse and verify someone else's User Key."""
        return import_user_key(serialized)

    def sign_message(self, message: Union[bytes, str]) -> Signature:
        """Compact identity signature over SHA-256(message)."""
        keys = self._require_ready()
        if isinstance(message, str):
            message = message.encode('utf-8')
        return sign_digest(keys.identity.signing_key(), message)

    # ── Transfers ───────────────────────────────────────────────────

    def send_resource(
        self,
        recipient: Union[UserKey, str],
        resource: Resource,
        sink: BroadcastSink,
        discovery_hint: Optional[bytes] = None,
    ) -> Tuple[TransferPayload, Resource]:
        """
        Seal a resource for a recipient and publish it.

        Returns:
            (published payload, resource as bound to the recipient)
        """
        if isinstance(recipient, str):
            recipient = import_user_key(recipient)
        payload, bound = seal_transfer(recipient, resource, discovery_hint)
        sink.publish(payload)
        return payload, bound

    def scan(
        self,
        payloads: Iterable[TransferPayload],
        max_workers: Optional[int] = None,
    ) -> List[ReceivedTransfer]:
        """Trial-decrypt payloads against this account's static keys."""
        keys = self._require_ready()
        return scan_payloads(keys, payloads, max_workers or self.scan_workers)

    def __repr__(self) -> str:
        return f"WalletSession(source={self.source.name!r}, state={self._state.value})"
