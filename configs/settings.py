from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "VecDB SDK"
    debug: bool = False

    # Milvus 向量数据库
    milvus_host: str = "localhost"
    milvus_port: int = 19530
    milvus_token: str = ""
    milvus_timeout: float | None = None  # 单次 RPC 超时（秒），None 表示不限制
    milvus_collection: str = "default_collection"

    # 默认 schema 的向量维度
    embedding_dimension: int = Field(default=128, gt=0)

    # 分区加载等待
    load_poll_interval: float = Field(default=0.1, gt=0)  # 轮询间隔（秒），固定值，不做退避
    load_timeout: float | None = Field(default=None, ge=0)  # None 表示一直等到加载完成
    load_max_poll_failures: int | None = Field(default=None, ge=1)  # 连续轮询失败上限，None 表示不限制

    class Config:
        env_file = ".env"


settings = Settings()
