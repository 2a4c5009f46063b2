### Local Imports
import schemas
###

COMPLETE_SHRED_UTILITY = 'shred'
QUICK_SHRED_UTILITY = 'ceph-volume'

def build_data_source(spec: schemas.SanitizeSpec) -> str:
  return f"/dev/{spec['data_source']}"

def build_shred_args(device_path: str, spec: schemas.SanitizeSpec) -> list[str]:
  args: list[str] = []
  # Random passes end with a zero pass so the random data isn't left visible
  if spec['data_source'] != 'zero': args.append('--zero')
  if spec['data_source'] == 'zero': args.append(f"--random-source={build_data_source(spec)}")
  return args + [
    '--force',
    '--verbose',
    f"--iterations={spec['iterations']}",
    device_path,
  ]

def build_quick_shred_commands(device_path: str) -> list[schemas.ShredCommand]:
  return [ schemas.ShredCommand(QUICK_SHRED_UTILITY, ['lvm', 'zap', device_path]) ]

def build_shred_commands(device_path: str, spec: schemas.SanitizeSpec) -> list[schemas.ShredCommand]:
  """Build the ordered commands that erase a single device

  The `quick` method only zaps the LVM container; `complete` overwrites the whole device with `shred`.
  Either way a single command is produced.
  """
  if spec['method'] == 'quick': return build_quick_shred_commands(device_path)
  return [ schemas.ShredCommand(COMPLETE_SHRED_UTILITY, build_shred_args(device_path, spec)) ]
