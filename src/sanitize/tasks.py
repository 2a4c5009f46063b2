"""

A group of independent tasks that run in parallel & are waited on together

The group is sized to the fan-out up front so every task starts as soon as it
is submitted. `wait` is the barrier: it returns only once every task has
finished, successfully or not, and it never raises on a task's behalf.

"""
from __future__ import annotations
from typing import Any, Callable, NamedTuple
import concurrent.futures

class TaskResult(NamedTuple):
  key: str
  ok: bool
  value: Any = None
  error: Exception | None = None

class TaskGroup:
  def __init__(self, name: str = 'task', size: int = 1):
    self.name = name
    self._pool = concurrent.futures.ThreadPoolExecutor(max_workers=max(size, 1), thread_name_prefix=name)
    self._futs: list[tuple[str, concurrent.futures.Future]] = []

  def submit(self, key: str, fn: Callable[..., Any], *args, **kwargs) -> None:
    self._futs.append((key, self._pool.submit(fn, *args, **kwargs)))

  def __len__(self) -> int:
    return len(self._futs)

  def wait(self) -> list[TaskResult]:
    """Block until every submitted task has completed; results are in submission order"""
    futs, self._futs = self._futs, []
    concurrent.futures.wait([fut for _, fut in futs])
    results: list[TaskResult] = []
    for key, fut in futs:
      if (e := fut.exception()) is not None: results.append(TaskResult(key, False, error=e))
      else: results.append(TaskResult(key, True, value=fut.result()))
    return results

  def close(self) -> None:
    self._pool.shutdown(wait=True)

  def __enter__(self) -> TaskGroup:
    return self

  def __exit__(self, *exc) -> None:
    self.wait()
    self.close()
