from __future__ import annotations
from loguru import logger
import sys, os, orjson

### Local imports
import schemas
import utils
import configs.default, configs.utils
from blkdev.utils import Executor
from sanitize.disk import DiskSanitizer
###

def load_config(argv: list[str]) -> schemas.SanitizeConfig:
  """Read the Configuration from stdin if piped, otherwise from the environment & `key=value` arguments"""
  cfg_json = sys.stdin.read().strip() if not sys.stdin.isatty() else ''
  try:
    if cfg_json: cfg = configs.default.from_env() | orjson.loads(cfg_json)
    else: cfg = configs.default.from_env(**utils.args_to_kv(argv))
    return configs.utils.validate(cfg)
  except orjson.JSONDecodeError as e: raise CLIError(f"Invalid Configuration JSON: {e}") from e
  except (TypeError, ValueError) as e: raise CLIError(f"Invalid Configuration: {e}") from e

def main(argv: list[str] | None = None) -> int:
  argv = sys.argv[1:] if argv is None else argv

  logger.debug('Checking we are root')
  if '--no-root-check' not in argv and not os.getuid() == 0: raise CLIError('Must run as root')

  cfg = load_config(argv)
  logger.info(f"Using Sanitize Configuration...\n{orjson.dumps(cfg, option=orjson.OPT_INDENT_2).decode()}")

  sanitizer = DiskSanitizer.from_config(cfg, Executor(timeout=cfg.get('command_timeout')))
  result = sanitizer.run()

  utils.write_to_stdout(orjson.dumps(result, option=orjson.OPT_APPEND_NEWLINE))

  if '--strict' in argv and not schemas.run_ok(result): return 1
  return 0

class CLIError(RuntimeError): ...
def setup_logging():
  logger.remove()
  logger.add(
    sink=sys.stderr,
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    enqueue=True,
    colorize=os.environ.get('LOG_FORMAT', '').lower() != 'json',
    serialize=os.environ.get('LOG_FORMAT', '').lower() == 'json',
  )
def finalize():
  logger.complete()
  sys.stderr.flush()
  sys.stdout.flush()
def _cli_error(e: Exception):
  logger.error(e)
  return 2
def _unhandled_error(e: Exception):
  logger.opt(exception=e).critical('Unhandled exception')
  return 3
def _interrupt_error():
  logger.warning("Interrupt Detected, Exiting...")
  return 4

def cli():
  _rc = 255
  setup_logging()
  try: _rc = main()
  except (KeyboardInterrupt, SystemExit): _rc = _interrupt_error()
  except CLIError as e: _rc = _cli_error(e)
  except Exception as e: _rc = _unhandled_error(e)
  finally: finalize()
  sys.exit(_rc)

if __name__ == '__main__': cli()
