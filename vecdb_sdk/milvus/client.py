"""Milvus 向量数据库客户端

基于 pymilvus.MilvusClient，补充分区 ID 查询、segment 统计，以及
等待数据可查询的分区加载。
"""
import logging
import threading
from typing import Any

import grpc
from pymilvus import MilvusClient as PyMilvusClient
from pymilvus.exceptions import MilvusException
from pymilvus.grpc_gen import milvus_pb2

from configs.settings import settings
from vecdb_sdk.loading import (
    LoadOrchestrator,
    PartitionAlreadyExists,
    PartitionInfo,
    RemoteQueryPort,
    SegmentInfo,
    ServiceError,
    USE_DEFAULT_TIMEOUT,
    ensure_collection_exists,
    ensure_partitions_exist,
)

logger = logging.getLogger(__name__)


def _build_uri(uri: str | None) -> str:
    """构建 Milvus URI"""
    if uri is None:
        host = settings.milvus_host.replace("http://", "").replace("https://", "")
        return f"http://{host}:{settings.milvus_port}"
    return uri


class MilvusClient(RemoteQueryPort):
    """Milvus 向量数据库客户端

    pymilvus 抛出的 MilvusException 统一转换为 ServiceError。

    用法:
        client = MilvusClient(uri="http://localhost:19530")

        client.create_partition("my_collection", "p1")

        # 阻塞直到 p1 的数据在查询节点上全部可见
        client.load_partitions("my_collection", ["p1"])

        # 只提交加载请求
        client.load_partitions("my_collection", ["p1"], async_=True)
    """

    def __init__(
        self,
        uri: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        loader: LoadOrchestrator | None = None,
    ):
        """初始化 Milvus 客户端

        Args:
            uri: Milvus 服务地址，格式: http://host:port
            token: 访问令牌，默认 settings.milvus_token
            timeout: 单次 RPC 超时（秒），默认 settings.milvus_timeout
            loader: 分区加载编排器，默认基于本客户端创建
        """
        self.uri = _build_uri(uri)
        self.token = token if token is not None else settings.milvus_token
        self.timeout = timeout if timeout is not None else settings.milvus_timeout
        self.loader = loader or LoadOrchestrator(self)
        self._client: PyMilvusClient | None = None

    @property
    def client(self) -> PyMilvusClient:
        """获取底层 pymilvus 客户端（懒加载）"""
        if self._client is None:
            self._client = PyMilvusClient(uri=self.uri, token=self.token)
            logger.info(f"已连接到 Milvus: {self.uri}")
        return self._client

    def close(self) -> None:
        """关闭连接"""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Milvus 连接已关闭")

    def _call(self, action: str, method: str, *args, **kwargs) -> Any:
        """调用 pymilvus 客户端方法，并把 MilvusException 转换为 ServiceError

        建立连接也在转换范围内，连接失败同样抛出 ServiceError。
        """
        try:
            return getattr(self.client, method)(*args, **kwargs)
        except MilvusException as e:
            raise ServiceError(f"{action}失败: {e.message}", code=e.code) from e

    def _call_handler(self, action: str, method: str, *args, **kwargs) -> Any:
        """调用 pymilvus 底层连接（GrpcHandler）的方法"""
        try:
            handler = self.client._get_connection()
            return getattr(handler, method)(*args, **kwargs)
        except MilvusException as e:
            raise ServiceError(f"{action}失败: {e.message}", code=e.code) from e

    # ==================== Collection 操作 ====================

    def list_collections(self) -> list[str]:
        """列出所有 Collection"""
        return self._call("列出 Collection", "list_collections", timeout=self.timeout)

    def has_collection(self, collection_name: str) -> bool:
        """检查 Collection 是否存在"""
        return self._call(
            "检查 Collection",
            "has_collection",
            collection_name,
            timeout=self.timeout,
        )

    def create_collection(
        self,
        collection_name: str,
        dimension: int | None = None,
        **kwargs,
    ) -> bool:
        """创建 Collection

        Args:
            collection_name: 集合名称
            dimension: 向量维度（快速建表模式），传入 schema 时可省略
            **kwargs: 其他参数传递给 pymilvus（schema、index_params、num_shards 等）

        Returns:
            是否创建（已存在返回 False）
        """
        if self.has_collection(collection_name):
            logger.warning(f"Collection {collection_name} 已存在")
            return False

        self._call(
            "创建 Collection",
            "create_collection",
            collection_name=collection_name,
            dimension=dimension,
            timeout=self.timeout,
            **kwargs,
        )
        logger.info(f"Collection {collection_name} 创建成功")
        return True

    def drop_collection(self, collection_name: str) -> None:
        """删除 Collection（不存在时忽略）"""
        if self.has_collection(collection_name):
            self._call("删除 Collection", "drop_collection", collection_name, timeout=self.timeout)
            logger.info(f"Collection {collection_name} 已删除")

    def get_collection_stats(self, collection_name: str) -> dict[str, Any]:
        """获取 Collection 统计信息"""
        stats = self._call(
            "获取 Collection 统计",
            "get_collection_stats",
            collection_name,
            timeout=self.timeout,
        )
        return {
            "name": collection_name,
            "row_count": int(stats.get("row_count", 0)),
        }

    def describe_collection(self, collection_name: str) -> dict[str, Any]:
        """获取 Collection 详细信息"""
        return self._call(
            "获取 Collection 详情",
            "describe_collection",
            collection_name,
            timeout=self.timeout,
        )

    # ==================== 分区操作 ====================

    def has_partition(self, collection_name: str, partition_name: str) -> bool:
        """检查分区是否存在"""
        return self._call(
            "检查分区",
            "has_partition",
            collection_name,
            partition_name,
            timeout=self.timeout,
        )

    def list_partitions(self, collection_name: str) -> list[PartitionInfo]:
        """列出分区名称和 ID

        pymilvus 的 list_partitions 只返回名称，这里直接调用 ShowPartitions。
        """
        request = milvus_pb2.ShowPartitionsRequest(collection_name=collection_name)
        try:
            handler = self.client._get_connection()
            response = handler._stub.ShowPartitions(request, timeout=self.timeout)
        except MilvusException as e:
            raise ServiceError(f"列出分区失败: {e.message}", code=e.code) from e
        except grpc.RpcError as e:
            raise ServiceError(f"列出分区失败: {e}") from e

        status = response.status
        if status.code != 0 or status.error_code != 0:
            raise ServiceError(f"列出分区失败: {status.reason}", code=status.code or status.error_code)

        return [
            PartitionInfo(name=name, id=partition_id)
            for name, partition_id in zip(response.partition_names, response.partitionIDs)
        ]

    def create_partition(self, collection_name: str, partition_name: str) -> None:
        """创建分区

        Raises:
            CollectionNotFound: Collection 不存在
            PartitionAlreadyExists: 分区已存在
        """
        ensure_collection_exists(self, collection_name)
        if self.has_partition(collection_name, partition_name):
            raise PartitionAlreadyExists(collection_name, partition_name)

        self._call(
            "创建分区",
            "create_partition",
            collection_name,
            partition_name,
            timeout=self.timeout,
        )
        logger.info(f"分区 {collection_name}/{partition_name} 创建成功")

    def drop_partition(self, collection_name: str, partition_name: str) -> None:
        """删除分区

        Raises:
            CollectionNotFound: Collection 不存在
            PartitionNotFound: 分区不存在
        """
        ensure_partitions_exist(self, collection_name, [partition_name])
        self._call(
            "删除分区",
            "drop_partition",
            collection_name,
            partition_name,
            timeout=self.timeout,
        )
        logger.info(f"分区 {collection_name}/{partition_name} 已删除")

    # ==================== 数据操作 ====================

    def insert(
        self,
        collection_name: str,
        data: list[dict[str, Any]],
        partition_name: str = "",
    ) -> dict[str, Any]:
        """插入数据并 flush，使 segment 落盘

        Args:
            collection_name: 集合名称
            data: 数据列表，每个元素是一个字典
            partition_name: 目标分区，空字符串表示 _default

        Returns:
            插入结果
        """
        result = self._call(
            "插入数据",
            "insert",
            collection_name=collection_name,
            data=data,
            partition_name=partition_name,
            timeout=self.timeout,
        )
        self._call("flush", "flush", collection_name, timeout=self.timeout)
        logger.debug(f"插入 {len(data)} 条数据到 {collection_name}/{partition_name or '_default'}")
        return result

    # ==================== 加载 / 释放 ====================

    def issue_load(self, collection_name: str, partition_names: list[str]) -> None:
        """提交加载请求，只等待服务端确认"""
        self._call(
            "加载分区",
            "load_partitions",
            collection_name,
            partition_names,
            timeout=self.timeout,
            _async=True,
        )

    def issue_release(self, collection_name: str, partition_names: list[str]) -> None:
        self._call(
            "释放分区",
            "release_partitions",
            collection_name,
            partition_names,
            timeout=self.timeout,
        )

    def load_partitions(
        self,
        collection_name: str,
        partition_names: list[str],
        async_: bool = False,
        timeout: float | None = USE_DEFAULT_TIMEOUT,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """加载分区到查询节点

        Args:
            collection_name: 集合名称
            partition_names: 分区名称列表
            async_: 为 True 时只提交请求，不等待数据可查询
            timeout: 等待上限（秒），None 表示不限制，默认 settings.load_timeout
            cancel_event: 置位后中止等待
        """
        self.loader.load_partitions(
            collection_name,
            partition_names,
            async_=async_,
            timeout=timeout,
            cancel_event=cancel_event,
        )

    def release_partitions(self, collection_name: str, partition_names: list[str]) -> None:
        """释放分区"""
        self.loader.release_partitions(collection_name, partition_names)

    # ==================== Segment 统计 ====================

    def fetch_persistent_segment_stats(self, collection_name: str) -> list[SegmentInfo]:
        """获取已持久化的 segment 信息"""
        infos = self._call_handler(
            "获取持久化 segment 信息",
            "get_persistent_segment_infos",
            collection_name,
            timeout=self.timeout,
        )
        return [
            SegmentInfo(segment_id=info.segmentID, num_rows=info.num_rows, partition_id=info.partitionID)
            for info in infos
        ]

    def fetch_query_segment_stats(self, collection_name: str) -> list[SegmentInfo]:
        """获取查询节点上已加载的 segment 信息"""
        infos = self._call_handler(
            "获取查询 segment 信息",
            "get_query_segment_info",
            collection_name,
            timeout=self.timeout,
        )
        return [
            SegmentInfo(segment_id=info.segmentID, num_rows=info.num_rows, partition_id=info.partitionID)
            for info in infos
        ]

    # ==================== 上下文管理 ====================

    def __enter__(self) -> "MilvusClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# 全局客户端实例（懒加载）
_default_client: MilvusClient | None = None


def get_milvus_client() -> MilvusClient:
    """获取全局 Milvus 客户端实例"""
    global _default_client
    if _default_client is None:
        _default_client = MilvusClient()
    return _default_client
