import pytest

### Local Imports
import configs.default, configs.utils
###

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
  for name in configs.default.ENV_KEYS: monkeypatch.delenv(name, raising=False)

def test_defaults():
  assert configs.default.assemble() == {
    'cluster_fsid': '',
    'sanitize_disks': { 'method': 'quick', 'data_source': 'zero', 'iterations': 1 },
    'pv_segments': 'first',
  }

def test_assemble_from_strings():
  cfg = configs.default.assemble(method='Complete', data_source='random', iterations='3', command_timeout='2m')
  assert cfg['sanitize_disks'] == { 'method': 'complete', 'data_source': 'random', 'iterations': 3 }
  assert cfg['command_timeout'] == 120

def test_assemble_rejects_non_integer_iterations():
  with pytest.raises(ValueError): configs.default.assemble(iterations='many')

def test_from_env(monkeypatch):
  monkeypatch.setenv('SANITIZE_METHOD', 'complete')
  monkeypatch.setenv('SANITIZE_ITERATIONS', '5')
  monkeypatch.setenv('CLUSTER_FSID', '4f1b4b6c-2f43-4a66-8c1b-3d2b0e3c5c11')
  cfg = configs.default.from_env(iterations='2')
  assert cfg['sanitize_disks']['method'] == 'complete'
  assert cfg['sanitize_disks']['iterations'] == 2
  assert cfg['cluster_fsid'] == '4f1b4b6c-2f43-4a66-8c1b-3d2b0e3c5c11'

def test_validate_accepts_defaults():
  cfg = configs.default.assemble()
  assert configs.utils.validate(cfg) is cfg

@pytest.mark.parametrize('kv', [
  { 'method': 'thorough' },
  { 'data_source': 'urandom' },
  { 'iterations': 0 },
  { 'iterations': -2 },
  { 'pv_segments': 'some' },
  { 'cluster_fsid': 'not-a-uuid' },
])
def test_validate_rejects(kv):
  with pytest.raises(ValueError): configs.utils.validate(configs.default.assemble(**kv))

def test_validate_rejects_missing_keys():
  with pytest.raises(ValueError): configs.utils.validate({ 'cluster_fsid': '', 'pv_segments': 'first' })
  with pytest.raises(ValueError):
    configs.utils.validate({ 'cluster_fsid': '', 'pv_segments': 'first', 'sanitize_disks': { 'method': 'quick' } })

def test_validate_rejects_bool_iterations():
  cfg = configs.default.assemble()
  cfg['sanitize_disks']['iterations'] = True
  with pytest.raises(ValueError): configs.utils.validate(cfg)
