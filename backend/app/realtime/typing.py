"""
Typing indicator tracking for shop conversations.

Typing signals are relayed, not stored. This tracker only remembers who is
typing where so that a connection that drops mid-typing can have a
typing:stop relayed on its behalf. Entries expire after a TTL.
"""
import logging
import time
from typing import Dict, Set, List, Optional, Tuple
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

TYPING_TIMEOUT = 5.0

# (shop_id, conversation_id)
TypingKey = Tuple[str, str]


@dataclass
class TypingEntry:
    """A connection currently typing in a conversation."""
    shop_id: str
    conversation_id: str
    user_id: str
    started_at: float = field(default_factory=time.time)

    def is_expired(self, timeout: float = TYPING_TIMEOUT) -> bool:
        return time.time() - self.started_at > timeout


@dataclass
class TypingTracker:
    """
    In-memory typing state.

    Structure:
    - typing[(shop_id, conversation_id)] = {sid: TypingEntry}
    - sid_keys[sid] = set((shop_id, conversation_id))  # for cleanup on disconnect
    """
    ttl_seconds: float = TYPING_TIMEOUT

    typing: Dict[TypingKey, Dict[str, TypingEntry]] = field(default_factory=dict)

    sid_keys: Dict[str, Set[TypingKey]] = field(default_factory=dict)

    def start_typing(self, shop_id: str, conversation_id: str, sid: str, user_id: str) -> bool:
        """
        Mark a connection as typing in a conversation.

        Returns True if this is a new typing state, False if it only refreshed
        an existing one.
        """
        key = (str(shop_id), str(conversation_id))
        self._cleanup_expired(key)

        entries = self.typing.setdefault(key, {})
        was_typing = sid in entries

        entries[sid] = TypingEntry(shop_id=key[0], conversation_id=key[1], user_id=user_id)
        self.sid_keys.setdefault(sid, set()).add(key)

        return not was_typing

    def stop_typing(self, shop_id: str, conversation_id: str, sid: str) -> bool:
        """Returns True if the connection was typing."""
        key = (str(shop_id), str(conversation_id))
        entries = self.typing.get(key, {})

        if sid not in entries:
            return False

        del entries[sid]
        if not entries:
            self.typing.pop(key, None)

        if sid in self.sid_keys:
            self.sid_keys[sid].discard(key)
            if not self.sid_keys[sid]:
                del self.sid_keys[sid]

        return True

    def connection_closed(self, sid: str) -> List[TypingEntry]:
        """
        Forget every typing state held by a connection.

        Returns the live (non-expired) entries so a stop can be relayed for each.
        """
        return self._drop(sid)

    def left_shop(self, sid: str, shop_id: str) -> List[TypingEntry]:
        """Forget a connection's typing state in one shop. Returns the live entries."""
        return self._drop(sid, str(shop_id))

    def _drop(self, sid: str, shop_id: Optional[str] = None) -> List[TypingEntry]:
        stopped = []
        for key in list(self.sid_keys.get(sid, set())):
            if shop_id is not None and key[0] != shop_id:
                continue
            entry = self.typing.get(key, {}).get(sid)
            if entry is not None and not entry.is_expired(self.ttl_seconds):
                stopped.append(entry)
            self.stop_typing(key[0], key[1], sid)
        return stopped

    def get_typing_users(self, shop_id: str, conversation_id: str) -> List[str]:
        key = (str(shop_id), str(conversation_id))
        self._cleanup_expired(key)
        return sorted({e.user_id for e in self.typing.get(key, {}).values()})

    def is_typing(self, shop_id: str, conversation_id: str, sid: str) -> bool:
        key = (str(shop_id), str(conversation_id))
        self._cleanup_expired(key)
        return sid in self.typing.get(key, {})

    def _cleanup_expired(self, key: TypingKey) -> None:
        entries = self.typing.get(key)
        if not entries:
            return
        expired = [sid for sid, e in entries.items() if e.is_expired(self.ttl_seconds)]
        for sid in expired:
            self.stop_typing(key[0], key[1], sid)

    def clear(self) -> None:
        """Clear all typing state (for testing)."""
        self.typing.clear()
        self.sid_keys.clear()
