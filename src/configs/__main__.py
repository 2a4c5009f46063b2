import os, sys, orjson
from loguru import logger

### Local Imports
from . import default, utils
import utils as _utils
###

def main() -> int:
  kv = _utils.args_to_kv(sys.argv[1:])
  try: cfg = utils.validate(default.from_env(**kv))
  except (TypeError, ValueError) as e: raise CLIError(f'Invalid Configuration: {e}') from e

  _utils.write_to_stdout(orjson.dumps(cfg, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE))
  return 0

class CLIError(RuntimeError): ...

if __name__ == '__main__':
  _rc = 1
  logger.remove()
  logger.add(sys.stderr, level=os.environ.get('LOG_LEVEL', 'DEBUG'), enqueue=True, colorize=True)
  try: _rc = main()
  except CLIError as e: logger.critical(str(e))
  except Exception as e: logger.opt(exception=e).critical("Unhandled Exception")
  finally:
    logger.complete()
    sys.stderr.flush()
    sys.stdout.flush()
    exit(_rc)
