import logging
import threading
from datetime import datetime

logger = logging.getLogger(__name__)


class AnalysisStore:
    """Session id -> analysis envelope. Subclass for an external cache."""

    def set(self, session_id, data):
        raise NotImplementedError

    def get(self, session_id):
        raise NotImplementedError

    def delete(self, session_id):
        raise NotImplementedError

    def list_sessions(self):
        raise NotImplementedError

    def has(self, session_id):
        return self.get(session_id) is not None

    def clear(self):
        for session in self.list_sessions():
            self.delete(session["sessionId"])

    def size(self):
        return len(self.list_sessions())


class InMemoryAnalysisStore(AnalysisStore):
    """Process-local store. Unbounded; entries live until deleted or restart."""

    def __init__(self):
        self._entries = {}
        self._lock = threading.Lock()

    def set(self, session_id, data):
        entry = {"data": data, "timestamp": datetime.now().isoformat()}
        with self._lock:
            self._entries[session_id] = entry
        logger.debug(f"Stored analysis for session {session_id}")

    def get(self, session_id):
        """Stored entry {data, timestamp} or None"""
        with self._lock:
            return self._entries.get(session_id)

    def delete(self, session_id):
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def list_sessions(self):
        with self._lock:
            items = list(self._entries.items())
        return [
            {
                "sessionId": session_id,
                "timestamp": entry["timestamp"],
                "hasData": bool(entry["data"]),
            }
            for session_id, entry in items
        ]

    def clear(self):
        with self._lock:
            self._entries.clear()

    def size(self):
        with self._lock:
            return len(self._entries)
