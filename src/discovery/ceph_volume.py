"""

Discover the OSDs deployed on this node through `ceph-volume`

`ceph-volume lvm list --format json` is keyed by OSD ID; each OSD lists one
entry per Logical Volume it owns (`block`, `db`, `wal`).

`ceph-volume raw list --format json` is keyed by OSD UUID; each OSD has a
single entry naming its `device` & optional `device_db`/`device_wal`.

"""
import orjson
from loguru import logger

### Local Imports
import schemas
from blkdev.utils import CommandRunner, CommandExecutionError
###

class DiscoveryError(RuntimeError): ...

def _load(raw: str, kind: str) -> dict:
  try: data = orjson.loads(raw or '{}')
  except orjson.JSONDecodeError as e: raise DiscoveryError(f"Malformed `ceph-volume {kind} list` output: {e}") from e
  if not isinstance(data, dict): raise DiscoveryError(f"Unexpected `ceph-volume {kind} list` output; expected an object, got {type(data).__name__}")
  return data

def is_dmcrypt_path(path: str) -> bool:
  return path.startswith('/dev/mapper/') and path.endswith('-dmcrypt')

def parse_lvm_list(raw: str, cluster_fsid: str = '') -> list[schemas.OSDInfo]:
  """Parse the `ceph-volume lvm list` JSON report into OSDs; OSDs of other clusters are skipped when `cluster_fsid` is set"""
  osds: list[schemas.OSDInfo] = []
  for osd_id, entries in _load(raw, 'lvm').items():
    try: _id = int(osd_id)
    except ValueError as e: raise DiscoveryError(f"Invalid OSD ID in lvm report: {osd_id}") from e
    osd: schemas.OSDInfo = {
      'id': _id,
      'block_path': '',
      'metadata_path': '',
      'wal_path': '',
      'encrypted': False,
    }
    if not (isinstance(entries, list) and all(isinstance(e, dict) for e in entries)): raise DiscoveryError(f"Unexpected lvm report for osd {_id}; expected a list of objects")
    fsid = ''
    for entry in entries:
      tags: dict[str, str] = entry.get('tags') or {}
      if not isinstance(tags, dict): raise DiscoveryError(f"Unexpected tags for lvm osd {_id}; expected an object")
      path = entry.get('lv_path') or entry.get('path', '')
      if entry.get('type') == 'block':
        osd['block_path'] = path
        osd['lv_path'] = path
        osd['encrypted'] = tags.get('ceph.encrypted', '0') == '1'
        if 'ceph.osd_fsid' in tags: osd['osd_uuid'] = tags['ceph.osd_fsid']
      elif entry.get('type') == 'db': osd['metadata_path'] = path
      elif entry.get('type') == 'wal': osd['wal_path'] = path
      fsid = fsid or tags.get('ceph.cluster_fsid', '')
    if cluster_fsid and fsid != cluster_fsid:
      logger.debug(f"Skipping lvm osd {_id}; it belongs to cluster `{fsid}`")
      continue
    if not osd['block_path']:
      logger.warning(f"Skipping lvm osd {_id}; no block device reported")
      continue
    osds.append(osd)
  return sorted(osds, key=lambda o: o['id'])

def parse_raw_list(raw: str, cluster_fsid: str = '') -> list[schemas.OSDInfo]:
  """Parse the `ceph-volume raw list` JSON report into OSDs; OSDs of other clusters are skipped when `cluster_fsid` is set"""
  osds: list[schemas.OSDInfo] = []
  for osd_uuid, entry in _load(raw, 'raw').items():
    if not isinstance(entry, dict): raise DiscoveryError(f"Unexpected raw report for osd {osd_uuid}; expected an object, got {type(entry).__name__}")
    if cluster_fsid and entry.get('ceph_fsid', '') != cluster_fsid:
      logger.debug(f"Skipping raw osd {entry.get('osd_id')}; it belongs to cluster `{entry.get('ceph_fsid')}`")
      continue
    try: _id = int(entry['osd_id'])
    except (KeyError, TypeError, ValueError) as e: raise DiscoveryError(f"Invalid or missing OSD ID for raw osd {osd_uuid}") from e
    device = entry.get('device') or ''
    if not device:
      logger.warning(f"Skipping raw osd {_id}; no block device reported")
      continue
    osds.append({
      'id': _id,
      'block_path': device,
      'metadata_path': entry.get('device_db') or '',
      'wal_path': entry.get('device_wal') or '',
      'encrypted': is_dmcrypt_path(device),
      'osd_uuid': entry.get('osd_uuid', osd_uuid),
    })
  return sorted(osds, key=lambda o: o['id'])

class CephVolumeDiscovery:
  """Lists the OSDs on this node by backend kind"""

  def __init__(self, executor: CommandRunner):
    self.executor = executor

  def _list(self, kind: str) -> str:
    try: return self.executor.output('ceph-volume', kind, 'list', '--format', 'json')
    except CommandExecutionError as e: raise DiscoveryError(f"Failed to list {kind} osd(s): {e}") from e

  def _parse(self, kind: str, parse, cluster_fsid: str) -> list[schemas.OSDInfo]:
    raw = self._list(kind)
    try: return parse(raw, cluster_fsid)
    except (AttributeError, TypeError, KeyError, ValueError) as e: raise DiscoveryError(f"Unexpected `ceph-volume {kind} list` report: {type(e).__name__}: {e}") from e

  def list_lvm_osds(self, cluster_fsid: str) -> list[schemas.OSDInfo]:
    return self._parse('lvm', parse_lvm_list, cluster_fsid)

  def list_raw_osds(self, cluster_fsid: str) -> list[schemas.OSDInfo]:
    return self._parse('raw', parse_raw_list, cluster_fsid)
