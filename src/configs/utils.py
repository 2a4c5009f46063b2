import uuid

### Local Imports
import schemas
###

def validate(cfg: schemas.SanitizeConfig) -> schemas.SanitizeConfig:
  """Check the Configuration before anything is erased; raises ValueError"""
  for key in ('cluster_fsid', 'sanitize_disks', 'pv_segments'):
    if key not in cfg: raise ValueError(f"Missing configuration key: {key}")
  spec = cfg['sanitize_disks']
  for key in ('method', 'data_source', 'iterations'):
    if key not in spec: raise ValueError(f"Missing sanitize_disks key: {key}")

  if spec['method'] not in schemas.SANITIZE_METHODS: raise ValueError(f"Unsupported sanitize method: {spec['method']}")
  if spec['data_source'] not in schemas.SANITIZE_DATA_SOURCES: raise ValueError(f"Unsupported sanitize data source: {spec['data_source']}")
  if isinstance(spec['iterations'], bool) or not isinstance(spec['iterations'], int) or spec['iterations'] < 1: raise ValueError(f"Iterations must be a positive integer: {spec['iterations']}")
  if cfg['pv_segments'] not in schemas.PV_SEGMENT_POLICIES: raise ValueError(f"Unsupported pv_segments policy: {cfg['pv_segments']}")
  if 'command_timeout' in cfg and not (isinstance(cfg['command_timeout'], (int, float)) and cfg['command_timeout'] > 0): raise ValueError(f"Command timeout must be a positive number of seconds: {cfg['command_timeout']}")
  if cfg['cluster_fsid']:
    try: uuid.UUID(cfg['cluster_fsid'])
    except ValueError as e: raise ValueError(f"Cluster FSID is not a UUID: {cfg['cluster_fsid']}") from e
  return cfg
