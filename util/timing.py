# util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Log how long a block took, tagged with key=val pairs:

      with timed(logger, "ping.server", product="C"):
          ...

    Success logs "<name>.done ms=<int> ..." at INFO. An exception leaving the
    block logs "<name>.failed ms=<int> err=<type> ..." at WARNING and propagates.
    """
    suffix = "".join(f" {k}={v}" for k, v in kv.items())
    t0 = time.perf_counter()
    try:
        yield
    except BaseException as e:
        logger.warning("%s.failed ms=%d err=%s%s", name, _elapsed_ms(t0), type(e).__name__, suffix)
        raise
    logger.info("%s.done ms=%d%s", name, _elapsed_ms(t0), suffix)
