"""
Basic usage example: start the backend, ask it for its resources, stop it.

Requirements:
    pip install pipebridge

The child executable defaults to ``bookr.exe`` on PATH.  Point the bridge
at something else with PIPEBRIDGE_COMMAND or a config file.
"""
import logging
import sys

from pipebridge import Bridge, StartupError, load_config

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("basic_usage")

logger.info("Starting backend...")
backend = Bridge(load_config())
try:
    backend.start()
except StartupError as exc:
    logger.error("Failed starting backend: %s", exc)
    sys.exit(1)

# --- Option 1: send and wait separately (other threads may send meanwhile) ---
call = backend.send("resources")
resources = backend.wait(call)
for name, value in resources.items():
    print(f"{name}: {value.to_python()}")

# --- Option 2: one blocking call with a payload ---
# result = backend.request("open", {"path": "/books/moby-dick.epub"})

logger.info("Stopping backend...")
backend.stop()
