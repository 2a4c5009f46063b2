import orjson
import pytest

### Local Imports
from discovery.ceph_volume import CephVolumeDiscovery, DiscoveryError, parse_lvm_list, parse_raw_list
from conftest import FakeExecutor
###

FSID = '4f1b4b6c-2f43-4a66-8c1b-3d2b0e3c5c11'
OTHER = '0b6e5a3a-1e0c-4d7f-9f57-8a7d2f4e1c22'

def lvm_entry(kind: str, path: str, fsid: str = FSID, encrypted: str = '0', osd_fsid: str = 'osd-uuid'):
  return {
    'lv_path': path, 'path': path, 'type': kind, 'devices': ['/dev/sdz'],
    'tags': { 'ceph.cluster_fsid': fsid, 'ceph.encrypted': encrypted, 'ceph.osd_fsid': osd_fsid },
  }

LVM_LIST = orjson.dumps({
  '3': [ lvm_entry('block', '/dev/ceph-b/osd-block-3') ],
  '1': [
    lvm_entry('block', '/dev/ceph-a/osd-block-1', encrypted='1'),
    lvm_entry('db', '/dev/ceph-db/osd-db-1'),
    lvm_entry('wal', '/dev/ceph-wal/osd-wal-1'),
  ],
  '9': [ lvm_entry('block', '/dev/ceph-c/osd-block-9', fsid=OTHER) ],
}).decode()

RAW_LIST = orjson.dumps({
  'uuid-2': { 'ceph_fsid': FSID, 'device': '/dev/sdc', 'osd_id': 2, 'osd_uuid': 'uuid-2', 'type': 'bluestore', 'device_db': '/dev/nvme0n1p1' },
  'uuid-0': { 'ceph_fsid': FSID, 'device': '/dev/mapper/ceph-uuid-0-sdb-block-dmcrypt', 'osd_id': 0, 'osd_uuid': 'uuid-0', 'type': 'bluestore' },
  'uuid-5': { 'ceph_fsid': OTHER, 'device': '/dev/sdd', 'osd_id': 5, 'osd_uuid': 'uuid-5', 'type': 'bluestore' },
}).decode()

def test_parse_lvm_list():
  osds = parse_lvm_list(LVM_LIST, FSID)
  assert [o['id'] for o in osds] == [1, 3]
  first = osds[0]
  assert first['block_path'] == first['lv_path'] == '/dev/ceph-a/osd-block-1'
  assert first['metadata_path'] == '/dev/ceph-db/osd-db-1'
  assert first['wal_path'] == '/dev/ceph-wal/osd-wal-1'
  assert first['encrypted'] is True
  assert osds[1]['encrypted'] is False

def test_parse_lvm_list_without_fsid_filter():
  assert [o['id'] for o in parse_lvm_list(LVM_LIST)] == [1, 3, 9]

def test_parse_raw_list():
  osds = parse_raw_list(RAW_LIST, FSID)
  assert [o['id'] for o in osds] == [0, 2]
  assert osds[0]['encrypted'] is True
  assert osds[1] == {
    'id': 2, 'block_path': '/dev/sdc', 'metadata_path': '/dev/nvme0n1p1', 'wal_path': '',
    'encrypted': False, 'osd_uuid': 'uuid-2',
  }

def test_empty_reports():
  assert parse_lvm_list('{}', FSID) == []
  assert parse_raw_list('', FSID) == []

@pytest.mark.parametrize('raw', ['not json', '[1, 2]'])
def test_malformed_reports(raw):
  with pytest.raises(DiscoveryError): parse_raw_list(raw)
  with pytest.raises(DiscoveryError): parse_lvm_list(raw)

def test_raw_entry_without_osd_id():
  with pytest.raises(DiscoveryError): parse_raw_list(orjson.dumps({ 'u': { 'device': '/dev/sdb' } }).decode())

def test_discovery_runs_ceph_volume():
  executor = FakeExecutor(outputs={ ('ceph-volume', 'lvm'): LVM_LIST, ('ceph-volume', 'raw'): RAW_LIST })
  discovery = CephVolumeDiscovery(executor)
  assert [o['id'] for o in discovery.list_lvm_osds(FSID)] == [1, 3]
  assert [o['id'] for o in discovery.list_raw_osds(FSID)] == [0, 2]
  assert executor.calls == [
    ('ceph-volume', 'lvm', 'list', '--format', 'json'),
    ('ceph-volume', 'raw', 'list', '--format', 'json'),
  ]

def test_discovery_command_failure():
  discovery = CephVolumeDiscovery(FakeExecutor(failures={ ('ceph-volume',) }))
  with pytest.raises(DiscoveryError): discovery.list_raw_osds(FSID)
  with pytest.raises(DiscoveryError): discovery.list_lvm_osds(FSID)

@pytest.mark.parametrize('report', [
  { '1': { 'type': 'block' } },
  { '1': 'block' },
  { '1': [ 'block' ] },
  { '1': [ { 'type': 'block', 'lv_path': '/dev/vg/a', 'tags': [ 'ceph.encrypted=1' ] } ] },
])
def test_lvm_report_with_unexpected_shape(report):
  with pytest.raises(DiscoveryError): parse_lvm_list(orjson.dumps(report).decode(), FSID)

@pytest.mark.parametrize('report', [
  { 'u-0': 'not an object' },
  { 'u-0': [ '/dev/sdb' ] },
])
def test_raw_report_with_unexpected_shape(report):
  with pytest.raises(DiscoveryError): parse_raw_list(orjson.dumps(report).decode(), FSID)

def test_discovery_wraps_unexpected_values():
  report = orjson.dumps({ 'u-0': { 'ceph_fsid': FSID, 'device': 42, 'osd_id': 0 } }).decode()
  discovery = CephVolumeDiscovery(FakeExecutor(outputs={ ('ceph-volume', 'raw'): report }))
  with pytest.raises(DiscoveryError): discovery.list_raw_osds(FSID)

def test_raw_osd_without_device_is_skipped():
  report = orjson.dumps({
    'u-0': { 'ceph_fsid': FSID, 'device': '', 'osd_id': 0 },
    'u-1': { 'ceph_fsid': FSID, 'device': '/dev/sdc', 'osd_id': 1 },
  }).decode()
  assert [o['id'] for o in parse_raw_list(report, FSID)] == [1]
