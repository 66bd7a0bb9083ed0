# app/services/proof_storage.py
import re
from pathlib import Path

from app.domain.errors import ValidationError, NotFoundError, ConflictError
from app.utils.settings import PROOF_STORAGE_DIR
from app.utils.logging import get_logger

logger = get_logger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class ProofStorage:
    """Pliki dowodow wplat na dysku, klucz to nazwa pliku w jednym katalogu."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or PROOF_STORAGE_DIR)

    def _path(self, key: str) -> Path:
        #bez sciezek wzglednych i separatorow
        if not KEY_PATTERN.match(key) or key.startswith("."):
            raise ValidationError("invalid proof key")
        return self.root / key

    def save(self, key: str, data: bytes) -> Path:
        path = self._path(key)
        self.root.mkdir(parents=True, exist_ok=True)
        #nigdy nie nadpisujemy istniejacego dowodu
        try:
            with open(path, "xb") as fh:
                fh.write(data)
        except FileExistsError:
            raise ConflictError("proof already stored", details={"key": key})
        logger.info(f"Stored proof {key} ({len(data)} bytes)")
        return path

    def open(self, key: str) -> Path:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError("proof not found", details={"key": key})
        return path

    def delete(self, key: str) -> None:
        path = self._path(key)
        path.unlink(missing_ok=True)
