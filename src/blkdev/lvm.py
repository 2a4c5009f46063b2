"""

LVM Operations on OSD Logical Volumes

A Logical Volume is reported as one `seg_pe_ranges` entry per segment, each
formatted as `PV_PATH:FIRST_PE-LAST_PE`.

"""
### Local Imports
import schemas
from blkdev.utils import CommandRunner
###

def query_pv_segments(executor: CommandRunner, lv_path: str) -> str:
  """Ask LVM which Physical Volume extents back the Logical Volume"""
  return executor.output('lvs', lv_path, '-o', 'seg_pe_ranges', '--noheadings')

def parse_pv_segments(output: str) -> list[str]:
  """Returns the Physical Volume of every segment in order, without duplicates"""
  pvs: list[str] = []
  for seg in output.split():
    pv = seg.split(':', 1)[0].strip()
    if pv and pv not in pvs: pvs.append(pv)
  return pvs

def zap_osd_command(osd_id: int) -> schemas.ShredCommand:
  """The command destroying every LVM artifact belonging to the OSD"""
  return schemas.ShredCommand('stdbuf', ['-oL', 'ceph-volume', 'lvm', 'zap', '--osd-id', str(osd_id), '--destroy'])
