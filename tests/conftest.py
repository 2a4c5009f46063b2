import threading, time
import pytest

### Local Imports
from blkdev.utils import CommandExecutionError
###

class FakeExecutor:
  """Records every invocation; responses are looked up by the command line prefix"""

  def __init__(self, outputs: dict[tuple, str] | None = None, failures: set[tuple] | None = None, delay: float = 0.0):
    self.outputs = outputs or {}
    self.failures = failures or set()
    self.delay = delay
    self.calls: list[tuple[str, ...]] = []
    self.events: list[tuple[str, tuple[str, ...]]] = []
    self._lock = threading.Lock()

  def _match(self, table, argv: tuple[str, ...]):
    for prefix in sorted(table, key=len, reverse=True):
      if argv[:len(prefix)] == prefix: return prefix
    return None

  def _invoke(self, argv: tuple[str, ...]) -> str:
    with self._lock:
      self.calls.append(argv)
      self.events.append(('start', argv))
    if self.delay: time.sleep(self.delay)
    try:
      if self._match(self.failures, argv) is not None: raise CommandExecutionError(f"Command `{argv[0]}` exited with status 1", output=f"boom: {' '.join(argv)}", returncode=1)
      prefix = self._match(self.outputs, argv)
      return self.outputs[prefix] if prefix is not None else f"ok: {' '.join(argv)}"
    finally:
      with self._lock: self.events.append(('end', argv))

  def run(self, name: str, *args: str) -> str:
    return self._invoke((name, *args))

  def output(self, name: str, *args: str) -> str:
    return self._invoke((name, *args))

class FakeDiscovery:
  def __init__(self, raw=None, lvm=None, raw_error=None, lvm_error=None):
    self.raw, self.lvm = raw or [], lvm or []
    self.raw_error, self.lvm_error = raw_error, lvm_error

  def list_raw_osds(self, cluster_fsid: str):
    if self.raw_error: raise self.raw_error
    return self.raw

  def list_lvm_osds(self, cluster_fsid: str):
    if self.lvm_error: raise self.lvm_error
    return self.lvm

@pytest.fixture
def complete_zero():
  return { 'method': 'complete', 'data_source': 'zero', 'iterations': 3 }

@pytest.fixture
def quick():
  return { 'method': 'quick', 'data_source': 'zero', 'iterations': 1 }

def raw_osd(osd_id: int, block: str, metadata: str = '', wal: str = '', encrypted: bool = False):
  return { 'id': osd_id, 'block_path': block, 'metadata_path': metadata, 'wal_path': wal, 'encrypted': encrypted }

def lvm_osd(osd_id: int, lv: str):
  return { 'id': osd_id, 'block_path': lv, 'metadata_path': '', 'wal_path': '', 'encrypted': False, 'lv_path': lv }
