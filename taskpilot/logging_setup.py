from __future__ import annotations

import logging
import sys

_HANDLER_NAME = "taskpilot.console"


def setup_logging(level: str | int = logging.INFO) -> None:
  """
  Configure the root logger with a single stderr handler.

  Safe to call more than once (every create_app() call does); the handler is
  only installed the first time, later calls just adjust the level.
  """
  root = logging.getLogger()
  root.setLevel(level)

  if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
    return

  fmt = logging.Formatter(
    fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
  )
  ch = logging.StreamHandler(sys.stderr)
  ch.set_name(_HANDLER_NAME)
  ch.setFormatter(fmt)
  root.addHandler(ch)

  # httpx logs every outbound request at INFO
  logging.getLogger("httpx").setLevel(logging.WARNING)
