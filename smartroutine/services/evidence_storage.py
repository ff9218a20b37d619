import logging
from typing import Optional
from urllib.parse import quote

import requests

from smartroutine.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class EvidenceStorage:
    '''HTTP object store for evidence files.

    Objects are written with ``PUT {base_url}/{path}`` and removed with
    ``DELETE`` on the URL returned by ``upload``.
    '''

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError('EVIDENCE_STORAGE_URL is not set')
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._http = session or requests.Session()
        if token:
            self._http.headers['Authorization'] = f'Bearer {token}'

    def url_for(self, path: str) -> str:
        return f'{self.base_url}/{quote(path.lstrip("/"))}'

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        url = self.url_for(path)
        try:
            resp = self._http.put(
                url,
                data=content,
                headers={'Content-Type': content_type},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f'Evidence upload to {url} failed: {e}')
            raise UploadError('Could not upload the evidence file.') from e
        logger.info(f'Uploaded evidence ({len(content)} bytes) to {url}')
        return url

    def delete(self, url: str) -> bool:
        '''Best-effort delete. Returns False instead of raising on failure.'''
        try:
            resp = self._http.delete(url, timeout=self.timeout)
            if resp.status_code == 404:
                return True
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f'Could not delete evidence {url}: {e}')
            return False
        return True
