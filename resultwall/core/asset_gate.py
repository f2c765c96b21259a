"""Asset readiness: fetch a record image and confirm it decodes before it is shown."""
import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from resultwall.config import ASSET_FETCH_TIMEOUT_SEC
from resultwall.models.presentation import Readiness

logger = logging.getLogger(__name__)


def resolved(readiness: Readiness) -> "Future[Readiness]":
    """An already completed readiness future."""
    fut: "Future[Readiness]" = Future()
    fut.set_result(readiness)
    return fut


class AssetReadinessGate:
    """One-shot readiness checks on a small worker pool. No retries here."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout_sec: float = ASSET_FETCH_TIMEOUT_SEC,
        max_workers: int = 2,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout_sec
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="asset-gate")

    def request(self, image_url: Optional[str]) -> "Future[Readiness]":
        """Future resolving to READY, FAILED, or (immediately) NO_ASSET."""
        if not image_url:
            return resolved(Readiness.NO_ASSET)
        return self._pool.submit(self.check, image_url)

    def check(self, image_url: str) -> Readiness:
        """Blocking fetch + decode. Never raises for transport or decode problems."""
        try:
            resp = self._session.get(image_url, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Asset: fetch failed for %s: %s", image_url, e)
            return Readiness.FAILED
        try:
            with Image.open(io.BytesIO(resp.content)) as img:
                img.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Asset: %s is not a decodable image: %s", image_url, e)
            return Readiness.FAILED
        return Readiness.READY

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
        self._session.close()
