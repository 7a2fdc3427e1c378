"""全局测试配置和 Fixtures"""
import threading
from collections.abc import Callable, Iterable

import pytest

from vecdb_sdk.loading import PartitionInfo, RemoteQueryPort, SegmentInfo, ServiceError


# ============ 测试替身 ============

class FakeClock:
    """可控时钟：sleep / wait 只推进时间，不真正休眠"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def wait(self, event: threading.Event, seconds: float) -> bool:
        """可取消等待：推进时间后返回事件是否已置位"""
        self.sleep(seconds)
        return event.is_set()


class FakeRemote(RemoteQueryPort):
    """内存中的远程服务

    query_rounds 中的每一项对应一次查询节点统计结果；
    项为异常实例时该次调用抛出该异常。轮次用完后重复最后一项。
    """

    def __init__(
        self,
        collections: dict[str, list[PartitionInfo]] | None = None,
        persistent: list[SegmentInfo] | Exception | None = None,
        query_rounds: Iterable[list[SegmentInfo] | Exception] = (),
    ):
        self.collections = collections if collections is not None else {}
        self.persistent = persistent if persistent is not None else []
        self.query_rounds = list(query_rounds)
        self.calls: list[tuple] = []
        self.on_query: Callable[[int], None] | None = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def has_collection(self, collection_name):
        self._record("has_collection", collection_name)
        return collection_name in self.collections

    def has_partition(self, collection_name, partition_name):
        self._record("has_partition", collection_name, partition_name)
        return any(p.name == partition_name for p in self.collections.get(collection_name, []))

    def list_partitions(self, collection_name):
        self._record("list_partitions", collection_name)
        return list(self.collections[collection_name])

    def issue_load(self, collection_name, partition_names):
        self._record("issue_load", collection_name, partition_names)

    def issue_release(self, collection_name, partition_names):
        self._record("issue_release", collection_name, partition_names)

    def fetch_persistent_segment_stats(self, collection_name):
        self._record("fetch_persistent_segment_stats", collection_name)
        if isinstance(self.persistent, Exception):
            raise self.persistent
        return list(self.persistent)

    def fetch_query_segment_stats(self, collection_name):
        self._record("fetch_query_segment_stats", collection_name)
        count = self.call_names().count("fetch_query_segment_stats")
        if self.on_query is not None:
            self.on_query(count)
        if not self.query_rounds:
            return []
        result = self.query_rounds[min(count, len(self.query_rounds)) - 1]
        if isinstance(result, Exception):
            raise result
        return list(result)


# ============ Fixtures ============

@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_partitions():
    """测试用分区"""
    return [
        PartitionInfo(name="_default", id=100),
        PartitionInfo(name="p1", id=101),
        PartitionInfo(name="p2", id=102),
    ]


@pytest.fixture
def sample_segments():
    """测试用持久化 segment"""
    return [
        SegmentInfo(segment_id=1, num_rows=100, partition_id=101),
        SegmentInfo(segment_id=2, num_rows=50, partition_id=101),
        SegmentInfo(segment_id=3, num_rows=0, partition_id=101),
        SegmentInfo(segment_id=4, num_rows=30, partition_id=102),
        SegmentInfo(segment_id=5, num_rows=70, partition_id=100),
    ]


@pytest.fixture
def fake_remote(sample_partitions, sample_segments):
    """包含 coll 的远程服务，查询节点统计默认一次到位"""
    return FakeRemote(
        collections={"coll": sample_partitions},
        persistent=sample_segments,
        query_rounds=[[
            SegmentInfo(segment_id=1, num_rows=100),
            SegmentInfo(segment_id=2, num_rows=50),
            SegmentInfo(segment_id=4, num_rows=30),
            SegmentInfo(segment_id=5, num_rows=70),
        ]],
    )


@pytest.fixture
def service_error():
    return ServiceError("服务不可用", code=1)
