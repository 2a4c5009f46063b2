"""

Sanitize the disks that backed this node's OSDs

Raw OSDs are erased region by region (data, metadata, wal), one task per OSD.

LVM OSDs go through two phases separated by a barrier:
  1. `ceph-volume lvm zap --destroy` per OSD; the Physical Volume(s) under
     each Logical Volume are looked up first since the zap removes the
     Volume Group metadata the lookup reads.
  2. Every Physical Volume found is erased like a raw device, removing the
     LVM2 metadata the zap leaves behind.

No failure aborts the run; every outcome is recorded in the `RunResult`.

"""
from __future__ import annotations
from loguru import logger

### Local Imports
import schemas
import blkdev.lvm
from blkdev.utils import CommandRunner, CommandExecutionError
from blkdev.crypt import CryptResolver, ResolutionError, TeardownError
from discovery.ceph_volume import CephVolumeDiscovery, DiscoveryError
from sanitize.commands import build_shred_commands
from sanitize.tasks import TaskGroup, TaskResult
###

class DiskSanitizer:
  """Holds the context needed to sanitize every OSD disk on the node"""

  def __init__(
    self,
    spec: schemas.SanitizeSpec,
    executor: CommandRunner,
    cluster_fsid: str = '',
    discovery: CephVolumeDiscovery | None = None,
    resolver: CryptResolver | None = None,
    pv_segments: schemas.pv_segments_t = 'first',
    log=logger,
  ):
    self.spec = spec
    self.executor = executor
    self.cluster_fsid = cluster_fsid
    self.discovery = discovery if discovery is not None else CephVolumeDiscovery(executor)
    self.resolver = resolver if resolver is not None else CryptResolver(executor)
    self.pv_segments = pv_segments
    self.log = log

  @classmethod
  def from_config(cls, cfg: schemas.SanitizeConfig, executor: CommandRunner, **kwargs) -> DiskSanitizer:
    return cls(
      spec=cfg['sanitize_disks'],
      executor=executor,
      cluster_fsid=cfg['cluster_fsid'],
      pv_segments=cfg['pv_segments'],
      **kwargs,
    )

  def run(self) -> schemas.RunResult:
    """Sanitize the raw OSDs, then the LVM OSDs"""
    result: schemas.RunResult = { 'phases': [], 'devices': {}, 'errors': [] }
    self.log.info(f"Sanitizing OSD disks of cluster `{self.cluster_fsid or '*'}` using the {self.spec['method']} method")

    try: raw_osds = self.discovery.list_raw_osds(self.cluster_fsid)
    except DiscoveryError as e:
      self.log.error(f"failed to list raw osd(s). {e}")
      result['errors'].append(str(e))
    else:
      result['phases'].append('raw')
      record_outcomes(result, self.sanitize_raw(raw_osds))

    try: lvm_osds = self.discovery.list_lvm_osds(self.cluster_fsid)
    except DiscoveryError as e:
      self.log.error(f"failed to list lvm osd(s). {e}")
      result['errors'].append(str(e))
    else:
      result['phases'].extend(['lvm-destroy', 'lvm-pv'])
      record_outcomes(result, self.sanitize_lvm(lvm_osds))

    failed = [ d for d, o in result['devices'].items() if not o['ok'] ]
    if schemas.run_ok(result): self.log.success(f"Sanitized {len(result['devices'])} device(s)")
    else: self.log.warning(f"Sanitization finished with failures; {len(failed)} of {len(result['devices'])} device(s) failed, {len(result['errors'])} discovery error(s)")
    return result

  def sanitize_raw(self, osds: list[schemas.OSDInfo]) -> list[schemas.DeviceOutcome]:
    with TaskGroup('sanitize-raw', size=len(osds)) as group:
      for osd in osds:
        self.log.bind(osd_id=osd['id'], device=osd['block_path'], phase='raw').info(f"sanitizing osd {osd['id']} disk {osd['block_path']!r}")
        group.submit(osd['block_path'], self.sanitize_osd, osd, 'raw')
      return self._collect(group.wait(), 'raw')

  def sanitize_lvm(self, osds: list[schemas.OSDInfo]) -> list[schemas.DeviceOutcome]:
    outcomes: list[schemas.DeviceOutcome] = []
    pvs: dict[str, int] = {}

    with TaskGroup('zap-lvm', size=len(osds)) as destroy:
      for osd in osds:
        lv_path = osd.get('lv_path') or osd['block_path']
        # The lookup has to finish before this OSD's zap starts
        for pv in self._lookup_pvs(osd['id'], lv_path, outcomes):
          pvs.setdefault(pv, osd['id'])
        destroy.submit(lv_path, self.wipe_lvm, osd['id'], lv_path)
      # The zap must be done everywhere before any Physical Volume is wiped
      outcomes.extend(self._collect(destroy.wait(), 'lvm-destroy'))

    with TaskGroup('sanitize-pv', size=len(pvs)) as residual:
      for pv, osd_id in pvs.items():
        self.log.bind(osd_id=osd_id, device=pv, phase='lvm-pv').info(f"purging remaining LVM2 metadata of osd {osd_id} from {pv!r}")
        residual.submit(pv, self.sanitize_device, pv, 'lvm-pv', osd_id)
      outcomes.extend(self._collect(residual.wait(), 'lvm-pv'))
    return outcomes

  def _lookup_pvs(self, osd_id: int, lv_path: str, outcomes: list[schemas.DeviceOutcome]) -> list[str]:
    log = self.log.bind(osd_id=osd_id, device=lv_path, phase='lvm-pv')
    try: output = blkdev.lvm.query_pv_segments(self.executor, lv_path)
    except CommandExecutionError as e:
      log.error(f"failed to execute lvs command for {lv_path!r}. output: {e.output}, error: {e}")
      outcomes.append(failed_outcome(lv_path, 'lvm-pv', f"physical volume lookup failed: {e}", osd_id))
      return []
    log.debug(f"lvs output: {output.strip()}")

    pvs = blkdev.lvm.parse_pv_segments(output)
    if not pvs:
      log.error(f"no physical volume reported for {lv_path!r}; its residual LVM2 metadata will not be wiped")
      outcomes.append(failed_outcome(lv_path, 'lvm-pv', 'no physical volume reported', osd_id))
      return []
    if self.pv_segments == 'first' and len(pvs) > 1:
      log.warning(f"{lv_path!r} spans {len(pvs)} physical volumes; only {pvs[0]!r} will be wiped, skipping {pvs[1:]}")
      pvs = pvs[:1]
    return pvs

  def wipe_lvm(self, osd_id: int, lv_path: str) -> schemas.DeviceOutcome:
    log = self.log.bind(osd_id=osd_id, device=lv_path, phase='lvm-destroy')
    result = self._execute(blkdev.lvm.zap_osd_command(osd_id))
    if result['ok']: log.success(f"successfully sanitized lvm osd {osd_id}")
    else: log.error(f"failed to sanitize osd {osd_id}. {result['output']}. {result['error']}")
    return { 'device': lv_path, 'phase': 'lvm-destroy', 'osd_id': osd_id, 'ok': result['ok'], 'commands': [result] }

  def sanitize_osd(self, osd: schemas.OSDInfo, phase: schemas.phase_t = 'raw') -> list[schemas.DeviceOutcome]:
    """Erase every region of the OSD; the data device is unwrapped first when encrypted"""
    block_path = osd['block_path']
    if osd['encrypted']: block_path = self._unwrap(osd['id'], block_path)
    return [
      self.sanitize_device(device, phase, osd['id'])
      for device in (block_path, osd['metadata_path'], osd['wal_path'])
      if device
    ]

  def _unwrap(self, osd_id: int, encrypted_path: str) -> str:
    log = self.log.bind(osd_id=osd_id, device=encrypted_path)
    try: real_path = self.resolver.resolve_backing_device(encrypted_path)
    except ResolutionError as e:
      log.error(f"failed to get backing device for encrypted block {encrypted_path!r}. {e}")
      return encrypted_path
    try: self.resolver.teardown_mapping(encrypted_path)
    except TeardownError as e: log.error(f"failed to remove dm device {encrypted_path!r}. {e}")
    return real_path

  def sanitize_device(self, device: str, phase: schemas.phase_t, osd_id: int | None = None) -> schemas.DeviceOutcome:
    log = self.log.bind(osd_id=osd_id, device=device, phase=phase)
    outcome: schemas.DeviceOutcome = { 'device': device, 'phase': phase, 'ok': True, 'commands': [] }
    if osd_id is not None: outcome['osd_id'] = osd_id
    for cmd in build_shred_commands(device, self.spec):
      result = self._execute(cmd)
      outcome['commands'].append(result)
      if result['ok']: log.success(f"successfully executed sanitization command for osd disk {device!r}")
      else:
        outcome['ok'] = False
        log.error(f"failed to execute sanitization command for osd disk {device!r}. output: {result['output']}, error: {result['error']}")
    return outcome

  def _execute(self, cmd: schemas.ShredCommand) -> schemas.CommandResult:
    result: schemas.CommandResult = { 'command': cmd.command, 'args': list(cmd.args), 'ok': True, 'output': '' }
    try: result['output'] = self.executor.run(cmd.command, *cmd.args)
    except CommandExecutionError as e:
      result |= { 'ok': False, 'output': e.output, 'error': str(e) }
    else: self.log.info(result['output'])
    return result

  def _collect(self, results: list[TaskResult], phase: schemas.phase_t) -> list[schemas.DeviceOutcome]:
    outcomes: list[schemas.DeviceOutcome] = []
    for r in results:
      if not r.ok:
        self.log.bind(device=r.key, phase=phase).opt(exception=r.error).error(f"sanitize task for {r.key!r} failed unexpectedly")
        outcomes.append(failed_outcome(r.key, phase, f"{type(r.error).__name__}: {r.error}"))
      elif isinstance(r.value, list): outcomes.extend(r.value)
      else: outcomes.append(r.value)
    return outcomes

def failed_outcome(device: str, phase: schemas.phase_t, error: str, osd_id: int | None = None) -> schemas.DeviceOutcome:
  outcome: schemas.DeviceOutcome = { 'device': device, 'phase': phase, 'ok': False, 'commands': [], 'error': error }
  if osd_id is not None: outcome['osd_id'] = osd_id
  return outcome

def record_outcomes(result: schemas.RunResult, outcomes: list[schemas.DeviceOutcome]) -> None:
  """Add the outcomes to the result; outcomes of the same device are merged"""
  for outcome in outcomes:
    if (prev := result['devices'].get(outcome['device'])) is None:
      result['devices'][outcome['device']] = outcome
      continue
    prev['ok'] = prev['ok'] and outcome['ok']
    prev['commands'].extend(outcome['commands'])
    if 'error' in outcome: prev['error'] = '; '.join(e for e in (prev.get('error'), outcome['error']) if e)
