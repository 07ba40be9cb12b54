"""
Host providers decide which elasticsearch node the next request goes to
"""

import threading
from abc import ABC, abstractmethod
from typing import Iterable

from simple_elastic.errors import SimpleElasticError


def normalize_host(host: str) -> str:
    """Hosts are base URLs that request paths are appended to, so they always end with a slash"""
    return host if host.endswith("/") else host + "/"


class HostProvider(ABC):
    @abstractmethod
    def next(self) -> str:
        """The base URL for the next request"""


class SingleHostProvider(HostProvider):
    def __init__(self, host: str):
        self.host = normalize_host(host)

    def next(self) -> str:
        return self.host

    def __repr__(self):
        return f"SingleHostProvider({self.host!r})"


class HostPoolProvider(HostProvider):
    """Round robin over a pool of hosts. Safe to share between threads"""

    def __init__(self, hosts: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._hosts = [normalize_host(h) for h in hosts]
        self._position = 0

    @property
    def hosts(self) -> list[str]:
        with self._lock:
            return list(self._hosts)

    def next(self) -> str:
        with self._lock:
            if not self._hosts:
                raise SimpleElasticError("No hosts available in the host pool")
            host = self._hosts[self._position % len(self._hosts)]
            self._position = (self._position + 1) % len(self._hosts)
            return host

    def replace_hosts(self, hosts: Iterable[str]) -> None:
        """Replace the pool, e.g. after sniffing the cluster nodes. Round robin starts over"""
        new_hosts = [normalize_host(h) for h in hosts]
        with self._lock:
            self._hosts = new_hosts
            self._position = 0

    def __repr__(self):
        return f"HostPoolProvider({self.hosts!r})"
