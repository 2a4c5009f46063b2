import re, os, sys

DURATION_MULTIPLIERS = {
  'ms': 0.001, 's': 1, 'm': 60, 'h': 60**2, 'd': 24 * 60**2,
}
HUMAN_DURATION_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$')


def convert_to_seconds(duration_str) -> float:
  """Convert a human readable duration (ie. `90`, `30s`, `5m`, `1.5h`) to seconds"""
  match = HUMAN_DURATION_RE.match(str(duration_str))
  if not match: raise ValueError(f"Invalid duration format: {duration_str}")
  number, unit = match.groups()
  number = float(number)

  if unit == '': multiplier = 1
  elif unit in DURATION_MULTIPLIERS: multiplier = DURATION_MULTIPLIERS[unit]
  else: raise ValueError("Unknown unit: {}".format(unit))

  return number * multiplier

def args_to_kv(argv: list[str]) -> dict[str, str]:
  kv = {}
  for arg in argv:
    if arg.startswith('-'): continue
    if '=' in arg:
      k, v = arg.split('=', 1)
      kv[k] = v
  return kv

def write_to_stdout(data: bytes):
  buf_len = len(data)
  bytes_written = 0
  while bytes_written < buf_len: bytes_written += sys.stdout.buffer.write(data[bytes_written:])

def env_kv(mapping: dict[str, str]) -> dict[str, str]:
  """Collect the non-empty environment variables named by `mapping` (ENV_NAME -> key)"""
  return { k: os.environ[name] for name, k in mapping.items() if os.environ.get(name) }
