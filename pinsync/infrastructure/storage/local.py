import json
import logging
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from pinsync.domain.shared.error import NotFoundError, StorageUnavailableError, ValidationError
from pinsync.domain.snapshot.model.value import Access, BlobInfo
from pinsync.domain.snapshot.port.blob_store import BlobStore

logger = logging.getLogger(__name__)

_TMP_PREFIX = ".tmp-"


class LocalBlobStore(BlobStore):
    """Local filesystem implementation of BlobStore.

    Blobs live under ``<base_path>/blobs``. URLs are ``<public_base_url>/<pathname>``
    when a public base URL is configured and ``file://`` URIs otherwise.
    """

    def __init__(self, base_path: str, public_base_url: str = "") -> None:
        self.root = (Path(base_path) / "blobs").resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _safe_path(self, pathname: str) -> Path:
        """Resolve pathname within the blob root, rejecting path traversal attempts."""
        if not pathname or pathname.startswith("/"):
            raise ValidationError(f"Invalid blob name: {pathname}", field="pathname")
        target = (self.root / pathname).resolve()
        if not target.is_relative_to(self.root) or target == self.root:
            raise ValidationError(f"Invalid blob name: {pathname}", field="pathname")
        return target

    def url_for(self, pathname: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{pathname}"
        return self._safe_path(pathname).as_uri()

    def _path_for(self, url: str) -> Path:
        if self.public_base_url and url.startswith(self.public_base_url + "/"):
            pathname = url[len(self.public_base_url) + 1 :]
        elif url.startswith("file://"):
            local = Path(unquote(urlparse(url).path))
            if not local.is_relative_to(self.root):
                raise NotFoundError(f"Blob not found: {url}")
            pathname = local.relative_to(self.root).as_posix()
        else:
            raise NotFoundError(f"Blob not found: {url}")

        try:
            return self._safe_path(pathname)
        except ValidationError:
            raise NotFoundError(f"Blob not found: {url}") from None

    async def put(self, pathname: str, body: bytes, access: Access = Access.PUBLIC) -> str:
        target = self._safe_path(pathname)
        target.parent.mkdir(parents=True, exist_ok=True)

        # Atomic, non-overwriting write: temp file, then hard link into place
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=_TMP_PREFIX)
        try:
            with open(fd, "wb") as f:
                f.write(body)
            target.hardlink_to(tmp_path)
        except FileExistsError:
            raise StorageUnavailableError(f"Blob already exists: {pathname}") from None
        except OSError as e:
            raise StorageUnavailableError(f"Failed to write blob {pathname}: {e}") from e
        finally:
            Path(tmp_path).unlink(missing_ok=True)

        logger.debug("Stored %s blob %s (%d bytes)", access, pathname, len(body))
        return self.url_for(pathname)

    async def get(self, url: str) -> dict[str, Any]:
        path = self._path_for(url)
        try:
            text = path.read_text()
        except FileNotFoundError:
            raise NotFoundError(f"Blob not found: {url}") from None
        except OSError as e:
            raise StorageUnavailableError(f"Failed to read blob {url}: {e}") from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Blob is not valid JSON: {url}") from e

    async def delete(self, url: str) -> None:
        try:
            path = self._path_for(url)
        except NotFoundError:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Failed to delete blob {url}: {e}") from e

    async def list(self, prefix: str = "") -> list[BlobInfo]:
        blobs = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.startswith(_TMP_PREFIX):
                continue
            pathname = path.relative_to(self.root).as_posix()
            if not pathname.startswith(prefix):
                continue
            stat = path.stat()
            blobs.append(
                BlobInfo(
                    url=self.url_for(pathname),
                    pathname=pathname,
                    size=stat.st_size,
                    uploaded_at=datetime.fromtimestamp(stat.st_mtime, UTC),
                )
            )
        return sorted(blobs, key=lambda b: b.pathname)
