"""集成测试配置 - 使用真实 Milvus

单元测试使用测试替身和 Mock；集成测试连接 settings 中配置的 Milvus，
服务不可用时自动跳过。

运行方式：
    pytest tests/integration/ -v -m integration
"""
import socket
import uuid

import pytest

from configs.settings import settings


# ============ 服务可用性检测 ============

def is_service_available(host: str, port: int, timeout: float = 2.0) -> bool:
    """检测服务是否可用"""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def _check_milvus() -> bool:
    host = settings.milvus_host.replace("http://", "").replace("https://", "")
    return is_service_available(host, settings.milvus_port)


# ============ Milvus Fixtures ============

@pytest.fixture(scope="function")
def milvus_client():
    """真实 Milvus 连接（每个测试函数独立）"""
    if not _check_milvus():
        pytest.skip(f"Milvus 服务不可用 ({settings.milvus_host}:{settings.milvus_port})")

    from vecdb_sdk.milvus.client import MilvusClient

    client = MilvusClient()
    try:
        _ = client.client
    except Exception as e:
        pytest.skip(f"Milvus 连接失败: {e}")

    yield client

    client.close()


@pytest.fixture(scope="function")
def test_collection(milvus_client):
    """集成测试专用 Collection，结束后删除"""
    from vecdb_sdk.milvus.collection import CollectionConfig, CollectionManager

    # 使用 UUID 避免并发测试冲突
    config = CollectionConfig(name=f"test_integration_{uuid.uuid4().hex[:8]}", dimension=8)
    collection = CollectionManager(config, client=milvus_client)
    collection.create()

    yield collection

    collection.drop()
