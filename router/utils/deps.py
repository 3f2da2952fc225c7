import asyncio
import logging
from typing import Optional

import httpx

from core.config import settings
from modules.traffic import PipelineConfig, pipeline_config_from_settings
from modules.traffic.fetcher import SleepFunc

logger = logging.getLogger(__name__)


def get_pipeline_config() -> PipelineConfig:
    """
    Pipeline configuration built from the process settings.
    Tests override this dependency to inject stub endpoints and short timeouts.
    """
    return pipeline_config_from_settings(settings)


def get_overpass_transport() -> Optional[httpx.AsyncBaseTransport]:
    """None means the default network transport."""
    return None


def get_retry_sleep() -> SleepFunc:
    return asyncio.sleep
