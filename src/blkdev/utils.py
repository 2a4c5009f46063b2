import subprocess
from typing import Protocol
from loguru import logger

class CommandExecutionError(RuntimeError):
  """A command exited non-zero, could not be started or timed out"""
  def __init__(self, msg: str, output: str = '', returncode: int | None = None):
    super().__init__(msg)
    self.output = output
    self.returncode = returncode

class CommandRunner(Protocol):
  def run(self, name: str, *args: str) -> str:
    """Run the command & return the combined stdout+stderr; raises CommandExecutionError on failure"""
  def output(self, name: str, *args: str) -> str:
    """Run the command & return only stdout; raises CommandExecutionError on failure"""

def _decode(buf: bytes | str | None) -> str:
  if buf is None: return ''
  if isinstance(buf, bytes): return buf.decode(errors='replace')
  return buf

class Executor:
  """Runs external utilities synchronously"""

  def __init__(self, timeout: float | None = None):
    self.timeout = timeout

  def _exec(self, args: list[str], stderr) -> str:
    logger.debug(f"Running: {' '.join(args)}")
    try:
      proc: subprocess.CompletedProcess = subprocess.run(
        args,
        stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=stderr,
        timeout=self.timeout,
      )
    except FileNotFoundError as e: raise CommandExecutionError(f"Command not found: {args[0]}") from e
    except subprocess.TimeoutExpired as e: raise CommandExecutionError(f"Command `{args[0]}` timed out after {self.timeout}s", output=_decode(e.output)) from e
    output = _decode(proc.stdout)
    if proc.returncode != 0: raise CommandExecutionError(f"Command `{args[0]}` exited with status {proc.returncode}", output=output, returncode=proc.returncode)
    return output

  def run(self, name: str, *args: str) -> str:
    return self._exec([name, *args], subprocess.STDOUT)

  def output(self, name: str, *args: str) -> str:
    return self._exec([name, *args], None)
