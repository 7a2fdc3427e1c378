"""SDK 异常定义"""


class VecDBError(Exception):
    """SDK 异常基类"""


class ServiceError(VecDBError):
    """远程服务调用失败（传输层或服务端返回错误）"""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class CollectionNotFound(VecDBError):
    """Collection 不存在"""

    def __init__(self, collection_name: str):
        super().__init__(f"Collection {collection_name} 不存在")
        self.collection_name = collection_name


class PartitionNotFound(VecDBError):
    """分区不存在"""

    def __init__(self, collection_name: str, partition_name: str):
        super().__init__(f"Collection {collection_name} 中不存在分区 {partition_name}")
        self.collection_name = collection_name
        self.partition_name = partition_name


class PartitionAlreadyExists(VecDBError):
    """分区已存在"""

    def __init__(self, collection_name: str, partition_name: str):
        super().__init__(f"Collection {collection_name} 中已存在分区 {partition_name}")
        self.collection_name = collection_name
        self.partition_name = partition_name


class LoadWaitError(VecDBError):
    """加载等待未能收敛

    Attributes:
        pending: 退出等待时仍未收敛的 segment ID
    """

    def __init__(self, message: str, pending: frozenset[int] = frozenset()):
        super().__init__(message)
        self.pending = pending


class WaitTimeout(LoadWaitError):
    """等待超过截止时间"""


class WaitCancelled(LoadWaitError):
    """等待被调用方取消"""


class PollFailureLimitExceeded(LoadWaitError):
    """连续轮询失败次数达到上限"""
