"""Milvus 向量数据库模块

提供 Milvus 客户端和 Collection 管理功能。

用法:
    from vecdb_sdk.milvus import MilvusClient, CollectionManager, get_milvus_client

    # 使用全局客户端
    client = get_milvus_client()
    client.load_partitions("my_collection", ["p1"])

    # 使用 Collection 管理器
    manager = CollectionManager(CollectionConfig(name="my_collection"))
    manager.create()
    manager.load(["_default"])
"""

from vecdb_sdk.milvus.client import MilvusClient, get_milvus_client
from vecdb_sdk.milvus.collection import (
    DEFAULT_PARTITION,
    CollectionConfig,
    CollectionManager,
    build_default_schema,
)

__all__ = [
    # 客户端
    "MilvusClient",
    "get_milvus_client",
    # Collection 管理
    "CollectionManager",
    "CollectionConfig",
    "build_default_schema",
    "DEFAULT_PARTITION",
]
