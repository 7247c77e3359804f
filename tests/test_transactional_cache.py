"""
TransactionalCache / TransactionalCacheManager 测试

测试内容：
1. 事务隔离：提交前写入不可见
2. 提交 / 回滚语义
3. 未命中的物化（提交时写入 None）
4. 管理器按缓存对象分配缓冲区
"""

import pytest

from stmtcache.cache.cache_interface import ICache
from stmtcache.cache.memory_cache import MemoryCache
from stmtcache.cache.transactional_cache import TransactionalCache
from stmtcache.cache.transactional_cache_manager import TransactionalCacheManager


class RecordingCache(ICache):
    """Shared cache that records every call"""

    def __init__(self, cache_id="recording", fail_on_remove=False):
        self._id = cache_id
        self.data = {}
        self.calls = []
        self.fail_on_remove = fail_on_remove

    @property
    def id(self):
        return self._id

    def get(self, key):
        self.calls.append(("get", key))
        return self.data.get(key)

    def put(self, key, value):
        self.calls.append(("put", key, value))
        if value is None:
            self.data.pop(key, None)
        else:
            self.data[key] = value

    def remove(self, key):
        self.calls.append(("remove", key))
        if self.fail_on_remove:
            raise RuntimeError("remove failed")
        return self.data.pop(key, None)

    def clear(self):
        self.calls.append(("clear",))
        self.data.clear()

    def size(self):
        return len(self.data)

    def mutations(self):
        return [call for call in self.calls if call[0] != "get"]


@pytest.fixture
def delegate():
    return RecordingCache()


@pytest.fixture
def txc(delegate):
    return TransactionalCache(delegate)


class TestIsolation:
    """事务隔离"""

    def test_put_then_get_is_absent(self, txc, delegate):
        txc.put("k", [1])

        assert txc.get("k") is None
        assert delegate.mutations() == []

    def test_put_then_get_sees_committed_value(self, txc, delegate):
        delegate.data["k"] = ["committed"]
        txc.put("k", ["buffered"])

        assert txc.get("k") == ["committed"]

    def test_remove_is_a_noop(self, txc, delegate):
        delegate.data["k"] = [1]
        assert txc.remove("k") is None
        assert delegate.data == {"k": [1]}

    def test_clear_hides_shared_values_until_commit(self, txc, delegate):
        delegate.data["k"] = [1]
        txc.clear()

        assert txc.get("k") is None
        assert delegate.data == {"k": [1]}
        assert txc.clear_on_commit

    def test_clear_drops_pending_writes(self, txc):
        txc.put("k", [1])
        txc.clear()
        assert txc.pending_writes == {}


class TestCommit:
    """提交"""

    def test_commit_with_nothing_pending_is_a_noop(self, txc, delegate):
        txc.commit()
        assert delegate.calls == []

    def test_commit_publishes_pending_writes(self, txc, delegate):
        txc.put("a", [1])
        txc.put("b", [2])
        txc.commit()

        assert delegate.data == {"a": [1], "b": [2]}

    def test_commit_materializes_misses(self, txc, delegate):
        txc.get("missing")
        txc.get("loaded")
        txc.put("loaded", [1])
        txc.commit()

        assert ("put", "missing", None) in delegate.calls
        assert ("put", "loaded", [1]) in delegate.calls
        assert ("put", "loaded", None) not in delegate.calls

    def test_commit_clears_before_writing(self, txc, delegate):
        delegate.data["old"] = [0]
        txc.clear()
        txc.put("new", [1])
        txc.commit()

        assert delegate.data == {"new": [1]}
        assert delegate.mutations()[0] == ("clear",)

    def test_commit_resets_state(self, txc, delegate):
        txc.get("k")
        txc.put("k", [1])
        txc.clear()
        txc.commit()

        assert not txc.clear_on_commit
        assert txc.pending_writes == {}
        assert txc.observed_misses == set()

        delegate.calls.clear()
        txc.commit()
        assert delegate.calls == []


class TestRollback:
    """回滚"""

    def test_rollback_discards_pending_writes(self, txc, delegate):
        txc.put("k", [1])
        txc.rollback()

        assert "k" not in delegate.data
        assert txc.pending_writes == {}

    def test_rollback_keeps_existing_value(self, txc, delegate):
        delegate.data["k"] = ["committed"]
        txc.put("k", ["speculative"])
        txc.rollback()

        assert delegate.data["k"] == ["committed"]

    def test_rollback_removes_missed_keys(self, txc, delegate):
        txc.get("k")
        txc.rollback()

        assert ("remove", "k") in delegate.calls
        assert txc.observed_misses == set()

    def test_rollback_swallows_remove_failures(self):
        delegate = RecordingCache(fail_on_remove=True)
        txc = TransactionalCache(delegate)
        txc.get("a")
        txc.get("b")

        txc.rollback()

        removes = sorted(call for call in delegate.calls if call[0] == "remove")
        assert removes == [("remove", "a"), ("remove", "b")]
        assert txc.observed_misses == set()


class TestDelegation:
    """委托属性"""

    def test_id_and_size(self, txc, delegate):
        delegate.data["k"] = [1]
        assert txc.id == "recording"
        assert txc.size() == 1
        assert txc.delegate is delegate


class TestTransactionalCacheManager:
    """事务缓存管理器"""

    @pytest.fixture
    def manager(self):
        return TransactionalCacheManager()

    def test_one_buffer_per_cache(self, manager):
        users = MemoryCache("users")
        orders = MemoryCache("orders")

        manager.put(users, "k", ["u"])
        manager.put(orders, "k", ["o"])
        manager.commit_all()

        assert users.get("k") == ["u"]
        assert orders.get("k") == ["o"]
        assert set(manager.pending_caches()) == {users, orders}

    def test_same_id_different_objects_do_not_share(self, manager):
        first = MemoryCache("same")
        second = MemoryCache("same")

        manager.put(first, "k", [1])
        manager.commit_all()

        assert first.get("k") == [1]
        assert second.get("k") is None

    def test_get_reads_shared_cache(self, manager):
        users = MemoryCache("users")
        users.put("k", [1])
        assert manager.get(users, "k") == [1]

    def test_rollback_all(self, manager):
        users = MemoryCache("users")
        manager.put(users, "k", [1])
        manager.rollback_all()
        manager.commit_all()

        assert users.get("k") is None

    def test_clear_applies_on_commit(self, manager):
        users = MemoryCache("users")
        users.put("old", [0])

        manager.clear(users)
        assert users.get("old") == [0]

        manager.commit_all()
        assert users.size() == 0
