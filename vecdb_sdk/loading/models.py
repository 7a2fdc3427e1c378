"""分区加载相关的数据类型"""
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class PartitionInfo:
    """分区名称与 ID"""

    name: str
    id: int


@dataclass(frozen=True)
class SegmentInfo:
    """Segment 统计信息

    持久化列表中 partition_id 总是存在；查询节点列表中可能为 None。
    """

    segment_id: int
    num_rows: int
    partition_id: int | None = None


@dataclass(frozen=True, eq=False)
class TargetSnapshot(Mapping):
    """一次加载需要等待的目标: segment_id -> 期望行数

    只包含行数大于 0 的 segment，构建后只读。
    """

    targets: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "targets", MappingProxyType(dict(self.targets)))

    @classmethod
    def capture(
        cls,
        partition_ids: Iterable[int],
        segments: Iterable[SegmentInfo],
    ) -> "TargetSnapshot":
        """从持久化 segment 列表中截取属于指定分区的非空 segment

        Args:
            partition_ids: 正在加载的分区 ID
            segments: Collection 的全部持久化 segment

        Returns:
            目标快照（没有匹配时为空）
        """
        wanted = set(partition_ids)
        targets = {
            segment.segment_id: segment.num_rows
            for segment in segments
            if segment.num_rows > 0 and segment.partition_id in wanted
        }
        return cls(targets)

    def __getitem__(self, segment_id: int) -> int:
        return self.targets[segment_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self.targets)

    def __len__(self) -> int:
        return len(self.targets)

    @property
    def total_rows(self) -> int:
        return sum(self.targets.values())


def observed_state(segments: Iterable[SegmentInfo]) -> dict[int, int]:
    """把查询节点 segment 列表转换为 segment_id -> 可见行数

    同一 segment 可能出现在多个副本上，取最大行数。
    """
    state: dict[int, int] = {}
    for segment in segments:
        current = state.get(segment.segment_id)
        if current is None or segment.num_rows > current:
            state[segment.segment_id] = segment.num_rows
    return state
