"""Early-boot side effects: dotenv, Prefect env defaults and logging.

This module is imported before any other farm_advisory modules so that
environment variables and logging are configured before Prefect reads
them at import time.
"""

import logging
import os

# -- Load .env ------------------------------------------------------------------
from dotenv import load_dotenv

load_dotenv()

# -- Prefect env-var defaults (must be set before Prefect is imported) --------
os.environ.setdefault("PREFECT_SERVER_ANALYTICS_ENABLED", "false")
os.environ.setdefault("PREFECT_SERVER_UI_SHOW_PROMOTIONAL_CONTENT", "false")

from farm_advisory import config  # noqa: E402

# -- farm_advisory / third-party logging setup ----------------------------------
advisory_logger = logging.getLogger("farm_advisory")
advisory_logger.setLevel(config.log_level())
if not advisory_logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(config.log_level())
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    advisory_logger.addHandler(handler)
advisory_logger.propagate = False

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("prefect").setLevel(logging.WARNING)
