from abc import ABC, abstractmethod

from vecdb_sdk.loading.models import PartitionInfo, SegmentInfo


class RemoteQueryPort(ABC):
    """加载流程依赖的远程服务能力

    除统计接口外，调用失败时应抛出 ServiceError。
    """

    @abstractmethod
    def has_collection(self, collection_name: str) -> bool:
        pass

    @abstractmethod
    def has_partition(self, collection_name: str, partition_name: str) -> bool:
        pass

    @abstractmethod
    def list_partitions(self, collection_name: str) -> list[PartitionInfo]:
        pass

    @abstractmethod
    def issue_load(self, collection_name: str, partition_names: list[str]) -> None:
        """发起加载请求，只等待服务端确认，不代表已可查询"""

    @abstractmethod
    def issue_release(self, collection_name: str, partition_names: list[str]) -> None:
        pass

    @abstractmethod
    def fetch_persistent_segment_stats(self, collection_name: str) -> list[SegmentInfo]:
        """已持久化的 segment 及行数"""

    @abstractmethod
    def fetch_query_segment_stats(self, collection_name: str) -> list[SegmentInfo]:
        """查询节点上当前可见的 segment 及行数"""
