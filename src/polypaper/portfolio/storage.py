"""Per-identity portfolio persistence over a key-value store.

The store is injected: anything with ``get(key) -> bytes | None`` and
``set(key, value: bytes) -> None`` works. :class:`MemoryStore` backs tests
and demo sessions, :class:`JsonFileStore` keeps one JSON file per key.

Loading never raises. Missing data yields the default state; malformed data
is repaired field by field (bad balance → starting balance, bad positions
list → empty, unreadable position records dropped).
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

from polypaper.config import INITIAL_WALLET_BALANCE, STORAGE_NAMESPACE
from polypaper.models.portfolio import PortfolioState, Position, default_state

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...


class MemoryStore:
    """In-process store."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """One file per key under a state directory (atomic write via temp+rename)."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        # identity는 이메일 등 임의 문자열 → 파일명으로 안전하게 인코딩
        return self.root / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            if not path.exists():
                return None
            return path.read_bytes()
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            return None

    def set(self, key: str, value: bytes) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(value)
            tmp_path.replace(path)  # Atomic on POSIX
            logger.debug("Saved %d bytes to %s", len(value), path)
        except OSError as e:
            logger.error("Failed to save %s: %s", path, e)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.debug("No temp file to clean up at %s", tmp_path)


def storage_key(identity: str, namespace: str = STORAGE_NAMESPACE) -> str:
    """``"<namespace>:<identity>:portfolio"``."""
    return f"{namespace}:{identity}:portfolio"


def _read_positions(raw_positions: list) -> tuple[Position, ...]:
    positions: list[Position] = []
    seen: set[str] = set()
    for i, raw in enumerate(raw_positions):
        if not isinstance(raw, dict):
            logger.warning("Dropping position #%d: not an object", i)
            continue
        try:
            pos = Position.from_dict(raw)
        except (KeyError, ValueError, TypeError, OverflowError) as e:
            logger.warning("Dropping unreadable position #%d: %r", i, e)
            continue
        numbers = (pos.average_price, pos.quantity, pos.total_invested)
        if not all(math.isfinite(n) for n in numbers):
            logger.warning("Dropping position %s: non-finite amounts", pos.id)
            continue
        if pos.id in seen:
            logger.warning("Dropping duplicate position %s (#%d)", pos.id, i)
            continue
        seen.add(pos.id)
        positions.append(pos)
    return tuple(positions)


def parse_state(
    raw: Optional[bytes],
    starting_balance: float = INITIAL_WALLET_BALANCE,
) -> PortfolioState:
    """Stored bytes → well-formed state. Never raises."""
    fallback = default_state(starting_balance)
    if not raw:
        return fallback

    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        logger.warning("Corrupt portfolio record (%s), starting fresh", e)
        return fallback

    if not isinstance(data, dict):
        logger.warning("Portfolio record is %s, starting fresh", type(data).__name__)
        return fallback

    balance = data.get("balance")
    try:
        balance = float(balance)
    except (TypeError, ValueError, OverflowError):
        balance = math.nan
    if not math.isfinite(balance):
        logger.warning("Portfolio balance missing or invalid, using starting balance")
        balance = starting_balance

    raw_positions = data.get("positions")
    if not isinstance(raw_positions, list):
        if raw_positions is not None:
            logger.warning("Portfolio positions is not a list, dropping")
        raw_positions = []

    return PortfolioState(balance=balance, positions=_read_positions(raw_positions))


def serialize_state(state: PortfolioState) -> bytes:
    return json.dumps(state.to_dict()).encode("utf-8")


class PortfolioRepository:
    """Load/save whole portfolios keyed by identity."""

    def __init__(
        self,
        store: KeyValueStore,
        starting_balance: float = INITIAL_WALLET_BALANCE,
        namespace: str = STORAGE_NAMESPACE,
    ):
        self.store = store
        self.starting_balance = starting_balance
        self.namespace = namespace

    def key_for(self, identity: str) -> str:
        return storage_key(identity, self.namespace)

    def load(self, identity: Optional[str]) -> PortfolioState:
        """identity 없으면 읽지 않고 기본 상태."""
        if not identity:
            return default_state(self.starting_balance)
        state = parse_state(self.store.get(self.key_for(identity)), self.starting_balance)
        logger.info(
            "Loaded portfolio for %s: balance=$%.2f, %d positions",
            identity, state.balance, len(state.positions),
        )
        return state

    def save(self, identity: Optional[str], state: PortfolioState) -> bool:
        """Overwrite the whole record. No identity → no write, returns False."""
        if not identity:
            return False
        self.store.set(self.key_for(identity), serialize_state(state))
        return True
