import uuid
from pathlib import Path

from medcheck.logging.logger import Log


class PreviewRegistry:
    """Issues and releases preview handles for selected images.

    A handle stays registered until released; the workflow controller
    releases every handle it supersedes.
    """

    SCHEME = "preview://"

    def __init__(self) -> None:
        self._handles: dict[str, Path] = {}

    def create(self, path: Path) -> str:
        handle = f"{self.SCHEME}{uuid.uuid4().hex}"
        self._handles[handle] = path
        Log.debug(f"Preview handle created for {path.name}")
        return handle

    def resolve(self, handle: str) -> Path:
        try:
            return self._handles[handle]
        except KeyError:
            raise KeyError(f"Preview handle is not active: {handle}") from None

    def release(self, handle: str) -> bool:
        """Release a handle. Returns False if it was not active."""
        return self._handles.pop(handle, None) is not None

    def release_all(self) -> int:
        count = len(self._handles)
        self._handles.clear()
        return count

    def __contains__(self, handle: object) -> bool:
        return handle in self._handles

    def __len__(self) -> int:
        return len(self._handles)
