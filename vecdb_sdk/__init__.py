from vecdb_sdk.loading import (
    CollectionNotFound,
    ConvergenceWaiter,
    LoadOrchestrator,
    LoadWaitError,
    PartitionAlreadyExists,
    PartitionNotFound,
    PollFailureLimitExceeded,
    RemoteQueryPort,
    ServiceError,
    TargetSnapshot,
    VecDBError,
    WaitCancelled,
    WaitTimeout,
)
from vecdb_sdk.milvus import CollectionConfig, CollectionManager, MilvusClient

__all__ = [
    # Milvus
    "MilvusClient",
    "CollectionManager",
    "CollectionConfig",
    # Loading
    "LoadOrchestrator",
    "ConvergenceWaiter",
    "RemoteQueryPort",
    "TargetSnapshot",
    # Errors
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
