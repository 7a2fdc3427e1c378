"""Segment 加载收敛等待

服务端只提供拉取式的统计接口，因此以固定间隔轮询查询节点上的 segment
行数，直到快照中的每个 segment 都追上持久化时的行数。
"""
import logging
import threading
import time
from collections.abc import Callable, Mapping

from configs.settings import settings
from vecdb_sdk.loading.errors import PollFailureLimitExceeded, WaitCancelled, WaitTimeout

logger = logging.getLogger(__name__)

# segment_id -> 查询节点上当前可见行数
ObservedState = Mapping[int, int]

# (event, delay) -> 事件是否已置位
CancelWait = Callable[[threading.Event, float], bool]


def sleep_then_check(sleep: Callable[[float], None]) -> CancelWait:
    """用普通休眠函数实现可取消等待：休眠结束后再检查事件"""
    def wait(event: threading.Event, delay: float) -> bool:
        sleep(delay)
        return event.is_set()
    return wait


class ConvergenceWaiter:
    """加载收敛等待器

    持有尚未收敛的 segment 集合（pending），每次轮询后移除已追上期望行数
    的 segment，集合为空即收敛。pending 只会缩小，不会重新加入。

    用法:
        waiter = ConvergenceWaiter(snapshot)
        waiter.run(poll, interval=0.1, timeout=30)

    单次轮询失败（poll 抛出异常）只记录日志，本轮不做任何更新，
    除非配置了 max_consecutive_failures。
    """

    def __init__(
        self,
        snapshot: Mapping[int, int],
        max_consecutive_failures: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wait: CancelWait | None = None,
    ):
        """初始化等待器

        Args:
            snapshot: segment_id -> 期望行数
            max_consecutive_failures: 连续轮询失败上限，None 表示不限制
            clock: 单调时钟，用于计算截止时间
            sleep: 轮询间隔的休眠函数
            wait: 传入 cancel_event 时使用的可取消等待 (event, delay) -> 是否已置位。
                默认使用 Event.wait，注入 sleep 时改为先 sleep 再检查事件
        """
        self.snapshot = snapshot
        self.max_consecutive_failures = max_consecutive_failures
        self._pending: set[int] = set(snapshot)
        self._clock = clock
        self._sleep = sleep
        if wait is None:
            wait = threading.Event.wait if sleep is time.sleep else sleep_then_check(sleep)
        self._wait = wait

        # 观测计数
        self.poll_count = 0
        self.failure_count = 0
        self.consecutive_failures = 0

    @property
    def pending(self) -> frozenset[int]:
        """尚未收敛的 segment ID"""
        return frozenset(self._pending)

    def is_converged(self) -> bool:
        return not self._pending

    def reconcile(self, observed: ObservedState) -> None:
        """用一次观测结果更新 pending

        本轮未出现的 segment 视为尚不可见，继续等待。
        """
        caught_up = {
            segment_id
            for segment_id in self._pending
            if segment_id in observed and observed[segment_id] >= self.snapshot[segment_id]
        }
        if caught_up:
            self._pending -= caught_up
            logger.debug(f"{len(caught_up)} 个 segment 已加载，剩余 {len(self._pending)} 个")

    def run(
        self,
        poll: Callable[[], ObservedState],
        interval: float | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """阻塞轮询直到收敛

        Args:
            poll: 获取当前观测结果，失败时抛出异常
            interval: 轮询间隔（秒），默认 settings.load_poll_interval
            timeout: 最长等待时间（秒），None 表示不限制
            cancel_event: 置位后尽快退出等待

        Raises:
            WaitTimeout: 超过 timeout 仍未收敛
            WaitCancelled: cancel_event 被置位
            PollFailureLimitExceeded: 连续失败次数达到上限
        """
        if interval is None:
            interval = settings.load_poll_interval
        deadline = None if timeout is None else self._clock() + timeout

        while self._pending:
            if cancel_event is not None and cancel_event.is_set():
                raise WaitCancelled(
                    f"加载等待已取消，剩余 {len(self._pending)} 个 segment",
                    pending=self.pending,
                )

            self._poll_once(poll)
            if not self._pending:
                break

            delay = interval
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise WaitTimeout(
                        f"加载等待超时 ({timeout}s)，剩余 {len(self._pending)} 个 segment",
                        pending=self.pending,
                    )
                delay = min(delay, remaining)

            if cancel_event is not None:
                # 置位后由循环开头抛出 WaitCancelled
                self._wait(cancel_event, delay)
            else:
                self._sleep(delay)

        logger.debug(f"加载收敛，共轮询 {self.poll_count} 次，失败 {self.failure_count} 次")

    def _poll_once(self, poll: Callable[[], ObservedState]) -> None:
        self.poll_count += 1
        try:
            observed = poll()
        except Exception as e:
            self.failure_count += 1
            self.consecutive_failures += 1
            logger.warning(
                f"第 {self.poll_count} 次轮询失败（连续 {self.consecutive_failures} 次）: {e}"
            )
            limit = self.max_consecutive_failures
            if limit is not None and self.consecutive_failures >= limit:
                raise PollFailureLimitExceeded(
                    f"连续 {self.consecutive_failures} 次轮询失败",
                    pending=self.pending,
                ) from e
            return

        self.consecutive_failures = 0
        self.reconcile(observed)
