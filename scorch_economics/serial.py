import threading

from .errors import ReentrantCall


class SerialGuard:
    """
    Serialises every operation of one component.

    Other threads wait their turn; the owning thread re-entering (a
    collaborator calling back mid-operation) is rejected rather than
    deadlocking or interleaving with the half-applied operation.
    """

    def __init__(self, component: str):
        self.component = component
        self._lock = threading.Lock()
        self._owner = None

    def __enter__(self):
        if self._owner == threading.get_ident():
            raise ReentrantCall(f"{self.component}: Reentrant call")
        self._lock.acquire()
        self._owner = threading.get_ident()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._owner = None
        self._lock.release()
        return False

    @property
    def held(self) -> bool:
        return self._owner == threading.get_ident()
