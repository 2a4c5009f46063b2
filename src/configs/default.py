### Local Imports
import schemas, utils
###

ENV_KEYS = {
  'CLUSTER_FSID': 'cluster_fsid',
  'SANITIZE_METHOD': 'method',
  'SANITIZE_DATA_SOURCE': 'data_source',
  'SANITIZE_ITERATIONS': 'iterations',
  'SANITIZE_PV_SEGMENTS': 'pv_segments',
  'SANITIZE_COMMAND_TIMEOUT': 'command_timeout',
}

def assemble(
  cluster_fsid: str = '',
  method: str = 'quick',
  data_source: str = 'zero',
  iterations: str | int = 1,
  pv_segments: str = 'first',
  command_timeout: str | None = None,
) -> schemas.SanitizeConfig:
  """Assemble a default Sanitize Configuration; values may be given as strings, ie. from the CLI or environment"""
  try: _iterations = int(iterations)
  except ValueError as e: raise ValueError(f"Iterations must be an integer: {iterations}") from e
  cfg: schemas.SanitizeConfig = {
    'cluster_fsid': cluster_fsid,
    'sanitize_disks': {
      'method': method.lower(),
      'data_source': data_source.lower(),
      'iterations': _iterations,
    },
    'pv_segments': pv_segments.lower(),
  }
  if command_timeout: cfg['command_timeout'] = utils.convert_to_seconds(command_timeout)
  return cfg

def from_env(**kv) -> schemas.SanitizeConfig:
  """Assemble the Configuration from the environment; explicit keyword arguments take precedence"""
  return assemble(**(utils.env_kv(ENV_KEYS) | kv))
