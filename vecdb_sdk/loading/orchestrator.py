"""分区加载编排

发起加载请求后，按需阻塞等待目标分区的数据在查询节点上全部可见。
"""
import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

from configs.settings import settings
from vecdb_sdk.loading.errors import CollectionNotFound, PartitionNotFound
from vecdb_sdk.loading.models import TargetSnapshot, observed_state
from vecdb_sdk.loading.port import RemoteQueryPort
from vecdb_sdk.loading.waiter import CancelWait, ConvergenceWaiter

logger = logging.getLogger(__name__)

# load_partitions 未指定 timeout 时使用编排器默认值；显式传入 None 表示不限制
USE_DEFAULT_TIMEOUT: Any = object()


def ensure_collection_exists(remote: RemoteQueryPort, collection_name: str) -> None:
    if not remote.has_collection(collection_name):
        raise CollectionNotFound(collection_name)


def ensure_partitions_exist(
    remote: RemoteQueryPort,
    collection_name: str,
    partition_names: Iterable[str],
) -> None:
    """逐个检查分区是否存在，遇到第一个不存在的分区立即失败"""
    ensure_collection_exists(remote, collection_name)
    for partition_name in partition_names:
        if not remote.has_partition(collection_name, partition_name):
            raise PartitionNotFound(collection_name, partition_name)


class LoadOrchestrator:
    """分区加载编排器

    用法:
        loader = LoadOrchestrator(remote)

        # 阻塞直到可查询
        loader.load_partitions("my_collection", ["p1", "p2"])

        # 只提交请求
        loader.load_partitions("my_collection", ["p1"], async_=True)
    """

    def __init__(
        self,
        remote: RemoteQueryPort,
        poll_interval: float | None = None,
        timeout: float | None = None,
        max_consecutive_failures: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wait: CancelWait | None = None,
    ):
        """初始化编排器

        Args:
            remote: 远程服务
            poll_interval: 轮询间隔（秒），默认 settings.load_poll_interval
            timeout: 默认等待上限（秒），默认 settings.load_timeout
            max_consecutive_failures: 连续轮询失败上限，默认 settings.load_max_poll_failures
            clock: 单调时钟
            sleep: 休眠函数
            wait: 可取消等待，默认由 ConvergenceWaiter 决定
        """
        self.remote = remote
        self.poll_interval = poll_interval if poll_interval is not None else settings.load_poll_interval
        self.timeout = timeout if timeout is not None else settings.load_timeout
        self.max_consecutive_failures = (
            max_consecutive_failures
            if max_consecutive_failures is not None
            else settings.load_max_poll_failures
        )
        self._clock = clock
        self._sleep = sleep
        self._wait = wait

    def load_partitions(
        self,
        collection_name: str,
        partition_names: list[str],
        async_: bool = False,
        timeout: float | None = USE_DEFAULT_TIMEOUT,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """加载分区

        Args:
            collection_name: 集合名称
            partition_names: 分区名称列表
            async_: 为 True 时服务端确认后立即返回，不等待数据可见
            timeout: 本次等待上限（秒），None 表示不限制，不传时使用编排器默认值
            cancel_event: 置位后中止等待

        Raises:
            CollectionNotFound: Collection 不存在
            PartitionNotFound: 任一分区不存在（此时不会发起加载请求）
            ServiceError: 列出分区或发起加载失败
            LoadWaitError: 等待超时、被取消或连续轮询失败
        """
        if not partition_names:
            raise ValueError("必须指定至少一个分区")

        ensure_partitions_exist(self.remote, collection_name, partition_names)
        partition_ids = self._resolve_partition_ids(collection_name, partition_names)

        self.remote.issue_load(collection_name, list(partition_names))
        logger.info(f"已提交加载请求: {collection_name} {partition_names}")

        if async_:
            return

        snapshot = self.capture_snapshot(collection_name, partition_ids)
        logger.info(
            f"等待 {collection_name} 加载: {len(snapshot)} 个 segment，共 {snapshot.total_rows} 行"
        )

        waiter = ConvergenceWaiter(
            snapshot,
            max_consecutive_failures=self.max_consecutive_failures,
            clock=self._clock,
            sleep=self._sleep,
            wait=self._wait,
        )
        waiter.run(
            lambda: observed_state(self.remote.fetch_query_segment_stats(collection_name)),
            interval=self.poll_interval,
            timeout=self.timeout if timeout is USE_DEFAULT_TIMEOUT else timeout,
            cancel_event=cancel_event,
        )
        logger.info(
            f"{collection_name} 分区 {partition_names} 加载完成 "
            f"(轮询 {waiter.poll_count} 次，失败 {waiter.failure_count} 次)"
        )

    def release_partitions(self, collection_name: str, partition_names: list[str]) -> None:
        """释放分区"""
        ensure_partitions_exist(self.remote, collection_name, partition_names)
        self.remote.issue_release(collection_name, list(partition_names))
        logger.info(f"已释放 {collection_name} 分区 {partition_names}")

    def capture_snapshot(self, collection_name: str, partition_ids: set[int]) -> TargetSnapshot:
        """获取需要等待的目标 segment

        持久化统计获取失败时按空列表处理，此时无需等待。
        """
        try:
            segments = self.remote.fetch_persistent_segment_stats(collection_name)
        except Exception as e:
            logger.warning(f"获取 {collection_name} 持久化 segment 信息失败，跳过等待: {e}")
            segments = []
        return TargetSnapshot.capture(partition_ids, segments)

    def _resolve_partition_ids(self, collection_name: str, partition_names: list[str]) -> set[int]:
        name_to_id = {p.name: p.id for p in self.remote.list_partitions(collection_name)}
        partition_ids = set()
        for partition_name in partition_names:
            if partition_name not in name_to_id:
                raise PartitionNotFound(collection_name, partition_name)
            partition_ids.add(name_to_id[partition_name])
        return partition_ids
