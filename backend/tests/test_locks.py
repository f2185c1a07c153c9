"""Per-tournament lock registry."""
import gc
import threading

from clubcomp.services import locks
from clubcomp.services.locks import tournament_lock


def test_lock_is_reentrant_for_the_holding_thread():
    with tournament_lock(41):
        with tournament_lock(41):
            assert 41 in locks._locks


def test_same_lock_is_handed_out_while_held():
    with tournament_lock(42):
        assert locks._lock_for(42) is locks._locks[42]
        held = locks._locks[42]
        assert locks._lock_for(42) is held


def test_released_locks_leave_the_registry():
    for tournament_id in range(1000, 1100):
        with tournament_lock(tournament_id):
            pass
    gc.collect()

    assert not any(1000 <= key < 1100 for key in list(locks._locks.keys()))


def test_other_thread_waits_for_the_holder():
    order = []
    entered = threading.Event()

    def contender():
        entered.set()
        with tournament_lock(43):
            order.append("contender")

    with tournament_lock(43):
        thread = threading.Thread(target=contender)
        thread.start()
        entered.wait(timeout=5)
        thread.join(timeout=0.2)
        order.append("holder")
    thread.join(timeout=5)

    assert order == ["holder", "contender"]
