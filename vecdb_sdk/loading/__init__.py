"""分区加载模块

提供加载请求编排和 segment 收敛等待。

用法:
    from vecdb_sdk.loading import LoadOrchestrator

    loader = LoadOrchestrator(remote)
    loader.load_partitions("my_collection", ["p1"], timeout=60)
"""

from vecdb_sdk.loading.errors import (
    CollectionNotFound,
    LoadWaitError,
    PartitionAlreadyExists,
    PartitionNotFound,
    PollFailureLimitExceeded,
    ServiceError,
    VecDBError,
    WaitCancelled,
    WaitTimeout,
)
from vecdb_sdk.loading.models import PartitionInfo, SegmentInfo, TargetSnapshot, observed_state
from vecdb_sdk.loading.orchestrator import (
    LoadOrchestrator,
    USE_DEFAULT_TIMEOUT,
    ensure_collection_exists,
    ensure_partitions_exist,
)
from vecdb_sdk.loading.port import RemoteQueryPort
from vecdb_sdk.loading.waiter import ConvergenceWaiter, ObservedState

__all__ = [
    # 编排
    "LoadOrchestrator",
    "USE_DEFAULT_TIMEOUT",
    "ConvergenceWaiter",
    "RemoteQueryPort",
    "ensure_collection_exists",
    "ensure_partitions_exist",
    # 数据类型
    "PartitionInfo",
    "SegmentInfo",
    "TargetSnapshot",
    "ObservedState",
    "observed_state",
    # 异常
    "VecDBError",
    "ServiceError",
    "CollectionNotFound",
    "PartitionNotFound",
    "PartitionAlreadyExists",
    "LoadWaitError",
    "WaitTimeout",
    "WaitCancelled",
    "PollFailureLimitExceeded",
]
