"""Milvus Collection 管理

绑定单个 Collection，提供建表、分区管理和分区加载。
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any

from pymilvus import CollectionSchema, DataType, FieldSchema

from configs.settings import settings
from vecdb_sdk.loading import USE_DEFAULT_TIMEOUT, PartitionInfo
from vecdb_sdk.milvus.client import MilvusClient, get_milvus_client

logger = logging.getLogger(__name__)

DEFAULT_PARTITION = "_default"


@dataclass
class CollectionConfig:
    """Collection 配置

    Attributes:
        name: 集合名称
        dimension: 向量维度，None 时使用 settings.embedding_dimension
        metric_type: 相似度计算方式（L2 或 IP）
        num_shards: 分片数
        description: 集合描述
    """

    name: str
    dimension: int | None = None
    metric_type: str = "L2"
    num_shards: int = 2
    description: str = ""

    def __post_init__(self):
        if self.dimension is None:
            self.dimension = settings.embedding_dimension


def build_default_schema(config: CollectionConfig) -> CollectionSchema:
    """默认 schema: int64 主键、float 标量、float 向量"""
    fields = [
        FieldSchema(name="id", dtype=DataType.INT64, is_primary=True, auto_id=False),
        FieldSchema(name="score", dtype=DataType.FLOAT),
        FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=config.dimension),
    ]
    return CollectionSchema(fields=fields, description=config.description)


class CollectionManager:
    """Collection 管理器

    用法:
        manager = CollectionManager(CollectionConfig(name="my_collection", dimension=128))
        manager.create()

        manager.create_partition("2024_q1")
        manager.load(["2024_q1"], timeout=60)
        manager.release(["2024_q1"])
    """

    def __init__(
        self,
        config: CollectionConfig | None = None,
        client: MilvusClient | None = None,
    ):
        """初始化 Collection 管理器

        Args:
            config: Collection 配置，默认使用 settings.milvus_collection
            client: Milvus 客户端，默认使用全局客户端
        """
        self.config = config or CollectionConfig(name=settings.milvus_collection)
        self._client = client

    @property
    def collection_name(self) -> str:
        return self.config.name

    @property
    def client(self) -> MilvusClient:
        """获取 Milvus 客户端"""
        if self._client is None:
            self._client = get_milvus_client()
        return self._client

    # ==================== Collection 操作 ====================

    def exists(self) -> bool:
        return self.client.has_collection(self.collection_name)

    def create(self, drop_if_exists: bool = False) -> bool:
        """创建 Collection 并建立向量索引

        Args:
            drop_if_exists: 如果存在是否删除重建

        Returns:
            是否成功创建（已存在返回 False）
        """
        if drop_if_exists:
            self.drop()

        index_params = self.client.client.prepare_index_params()
        index_params.add_index(
            field_name="embedding",
            index_type="AUTOINDEX",
            metric_type=self.config.metric_type,
        )

        created = self.client.create_collection(
            self.collection_name,
            schema=build_default_schema(self.config),
            index_params=index_params,
            num_shards=self.config.num_shards,
        )
        if created:
            logger.info(f"Collection {self.collection_name} 已就绪 (dim={self.config.dimension})")
        return created

    def drop(self) -> None:
        self.client.drop_collection(self.collection_name)

    def stats(self) -> dict[str, Any]:
        """获取统计信息"""
        return self.client.get_collection_stats(self.collection_name)

    # ==================== 分区操作 ====================

    def partitions(self) -> list[PartitionInfo]:
        return self.client.list_partitions(self.collection_name)

    def has_partition(self, partition_name: str) -> bool:
        return self.client.has_partition(self.collection_name, partition_name)

    def create_partition(self, partition_name: str) -> None:
        self.client.create_partition(self.collection_name, partition_name)

    def drop_partition(self, partition_name: str) -> None:
        self.client.drop_partition(self.collection_name, partition_name)

    # ==================== 加载 / 释放 ====================

    def load(
        self,
        partition_names: list[str] | None = None,
        sync: bool = True,
        timeout: float | None = USE_DEFAULT_TIMEOUT,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """加载分区

        Args:
            partition_names: 分区名称列表，默认只加载 _default 分区
            sync: 是否等待数据在查询节点上全部可见
            timeout: 等待上限（秒），None 表示不限制，默认 settings.load_timeout
            cancel_event: 置位后中止等待
        """
        self.client.load_partitions(
            self.collection_name,
            partition_names or [DEFAULT_PARTITION],
            async_=not sync,
            timeout=timeout,
            cancel_event=cancel_event,
        )

    def release(self, partition_names: list[str] | None = None) -> None:
        """释放分区，默认释放全部分区"""
        if partition_names is None:
            partition_names = [p.name for p in self.partitions()]
        self.client.release_partitions(self.collection_name, partition_names)
