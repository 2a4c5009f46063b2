from loguru import logger

### Local Imports
from blkdev.utils import CommandRunner, CommandExecutionError
###

class ResolutionError(RuntimeError): ...
class TeardownError(RuntimeError): ...

def parse_backing_device(status_output: str) -> str:
  """Extract the backing device from `cryptsetup status` output. Returns an empty string if there is none"""
  for line in status_output.splitlines():
    key, sep, value = line.strip().partition(':')
    if sep and key.strip() == 'device': return value.strip()
  return ""

class CryptResolver:
  """Unwraps dm-crypt mappings to the block device underneath"""

  def __init__(self, executor: CommandRunner):
    self.executor = executor

  def resolve_backing_device(self, encrypted_path: str) -> str:
    try: output = self.executor.output('cryptsetup', 'status', encrypted_path)
    except CommandExecutionError as e: raise ResolutionError(f"Failed to query dm-crypt status of `{encrypted_path}`: {e}") from e
    if not (backing := parse_backing_device(output)): raise ResolutionError(f"No backing device reported for `{encrypted_path}`")
    logger.debug(f"Encrypted device `{encrypted_path}` is backed by `{backing}`")
    return backing

  def teardown_mapping(self, encrypted_path: str) -> None:
    try: self.executor.run('dmsetup', 'remove', '--force', encrypted_path)
    except CommandExecutionError as e: raise TeardownError(f"Failed to remove dm device `{encrypted_path}`: {e}") from e
