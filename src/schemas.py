from typing import TypedDict, Literal, NotRequired, NamedTuple

sanitize_method_t = Literal['quick', 'complete']
sanitize_data_source_t = Literal['zero', 'random']
pv_segments_t = Literal['first', 'all']
phase_t = Literal['raw', 'lvm-destroy', 'lvm-pv']

SANITIZE_METHODS: tuple[sanitize_method_t, ...] = ('quick', 'complete')
SANITIZE_DATA_SOURCES: tuple[sanitize_data_source_t, ...] = ('zero', 'random')
PV_SEGMENT_POLICIES: tuple[pv_segments_t, ...] = ('first', 'all')

class SanitizeSpec(TypedDict):
  """How the disks are erased; never mutated once supplied"""
  method: sanitize_method_t
  """`quick` destroys the LVM container, `complete` overwrites the device"""
  data_source: sanitize_data_source_t
  """Where the overwrite passes read their data from"""
  iterations: int
  """Number of overwrite passes; only meaningful for the `complete` method"""

class SanitizeConfig(TypedDict):
  cluster_fsid: str
  """Only OSDs belonging to this Ceph cluster are sanitized"""
  sanitize_disks: SanitizeSpec
  pv_segments: pv_segments_t
  """Which Physical Volumes backing a Logical Volume get the residual wipe"""
  command_timeout: NotRequired[float]
  """(Optional) Seconds before a single command invocation is abandoned"""

class OSDInfo(TypedDict):
  id: int
  """The OSD ID"""
  block_path: str
  """The main data device"""
  metadata_path: str
  """The DB device; empty if colocated with the data device"""
  wal_path: str
  """The WAL device; empty if colocated with the data device"""
  encrypted: bool
  """Whether `block_path` is a dm-crypt mapping"""
  lv_path: NotRequired[str]
  """The Logical Volume holding the OSD (LVM OSDs only)"""
  osd_uuid: NotRequired[str]

class ShredCommand(NamedTuple):
  command: str
  args: list[str]

class CommandResult(TypedDict):
  command: str
  args: list[str]
  ok: bool
  output: str
  error: NotRequired[str]

class DeviceOutcome(TypedDict):
  device: str
  """The device path the commands were issued against"""
  phase: phase_t
  osd_id: NotRequired[int]
  ok: bool
  commands: list[CommandResult]
  error: NotRequired[str]
  """Failure not attributable to a single command"""

class RunResult(TypedDict):
  phases: list[str]
  """The phases that ran, in order"""
  devices: dict[str, DeviceOutcome]
  """Outcome per device path"""
  errors: list[str]
  """Failures not tied to a device, ie. discovery"""

def run_ok(result: RunResult) -> bool:
  """True when nothing in the run failed"""
  if result['errors']: return False
  return all(o['ok'] for o in result['devices'].values())
