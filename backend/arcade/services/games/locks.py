import threading
from contextlib import contextmanager
from typing import Dict

# One lock per game id so read-modify-write on a game never interleaves
# inside this process. Reentrant so an action may call another on the same game.
_game_locks: Dict[int, 'threading.RLock'] = {}
_registry_lock = threading.Lock()


def _lock_for(game_id: int):
    with _registry_lock:
        lock = _game_locks.get(game_id)
        if lock is None:
            lock = _game_locks[game_id] = threading.RLock()
        return lock


@contextmanager
def game_lock(game_id):
    lock = _lock_for(int(game_id))
    with lock:
        yield


def discard_lock(game_id) -> None:
    with _registry_lock:
        _game_locks.pop(int(game_id), None)
