import posixpath
from typing import Any, ClassVar, Dict, Optional
from urllib.parse import urlparse

from .errors import throw_unsupported
from .events import EventEmitter


class DownloadItem:
    """Describes a download requested through ``WebContents.download_url``."""

    def __init__(self, url: str, web_contents: Any):
        self._url = url
        self.web_contents = web_contents

    def get_url(self) -> str:
        return self._url

    def get_filename(self) -> str:
        return posixpath.basename(urlparse(self._url).path)


class Session(EventEmitter):
    """
    Browser session keyed by partition.

    Only the event surface and a few flags are emulated; cookies,
    caches and request interception belong to the host.
    """

    _sessions: ClassVar[Dict[str, "Session"]] = {}
    _default: ClassVar[Optional["Session"]] = None

    def __init__(self, name: str = "", persistent: bool = True, cache: bool = True):
        super().__init__()
        self._name = name
        self._persistent = persistent
        self._cache_enabled = cache
        self._spell_checker_enabled = False

    @classmethod
    def default_session(cls) -> "Session":
        if cls._default is None:
            cls._default = cls(name="", persistent=True, cache=True)
        return cls._default

    @classmethod
    def from_partition(cls, partition: str, cache: bool = True) -> "Session":
        """
        Return the session for ``partition``, creating it once.

        ``""`` is the default session; ``persist:`` prefixed partitions
        are persistent, all others live in memory.
        """
        if partition == "":
            return cls.default_session()
        session = cls._sessions.get(partition)
        if session is None:
            session = cls(name=partition, persistent=partition.startswith("persist:"), cache=cache)
            cls._sessions[partition] = session
        return session

    @property
    def name(self) -> str:
        return self._name

    def is_persistent(self) -> bool:
        return self._persistent

    def is_cache_enabled(self) -> bool:
        return self._cache_enabled

    def set_spell_checker_enabled(self, enable: bool) -> None:
        if enable:
            throw_unsupported("Session.set_spell_checker_enabled", "can't accept the value True")

    def is_spell_checker_enabled(self) -> bool:
        return self._spell_checker_enabled
