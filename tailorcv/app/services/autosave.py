"""
Autosave coordinator.

Coalesces a stream of editor snapshots into saves: a save starts only after
`debounce` seconds without new edits, at most one save is in flight, and a failed
save parks the coordinator in an error state until retry() or the next edit.
The photo is left out of a save (meaning "unchanged") when its metadata
fingerprint matches the last saved one.
"""
import asyncio
import copy
from typing import Any, Awaitable, Callable

from tailorcv.app.core.config import settings
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.utils.fingerprint import photo_fingerprint

logger = get_logger("services.autosave")

SaveFn = Callable[[dict], Awaitable[Any]]


def _comparable(values: dict) -> dict:
    out = dict(values)
    if "photo" in out:
        out["photo"] = photo_fingerprint(out["photo"])
    return out


def _saved_id(saved: Any) -> str | None:
    if isinstance(saved, dict):
        return saved.get("id")
    return getattr(saved, "id", None)


class AutosaveCoordinator:
    def __init__(self, save_fn: SaveFn, initial: dict, debounce: float | None = None):
        self._save_fn = save_fn
        self.debounce = settings.autosave_debounce_seconds if debounce is None else debounce
        self.resume_id: str | None = initial.get("id")
        self._last_saved = copy.deepcopy(initial)
        self._latest = copy.deepcopy(initial)
        self._timer: asyncio.Task | None = None
        self._draining: asyncio.Task | None = None
        self.is_saving = False
        self.is_error = False
        self.last_error: Exception | None = None

    @property
    def has_unsaved_changes(self) -> bool:
        return _comparable(self._latest) != _comparable(self._last_saved)

    def update(self, values: dict) -> None:
        """Record a new snapshot and restart the debounce window."""
        self._latest = copy.deepcopy(values)
        self.is_error = False
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._debounced())

    def _cancel_timer(self) -> asyncio.Task | None:
        """Cancel the pending debounce, never a save that already started."""
        timer = self._timer
        if timer and not timer.done() and timer is not self._draining:
            timer.cancel()
            return timer
        return None

    async def _debounced(self) -> None:
        await asyncio.sleep(self.debounce)
        me = asyncio.current_task()
        self._draining = me
        try:
            await self._drain()
        finally:
            if self._draining is me:
                self._draining = None

    async def _drain(self) -> None:
        while self.has_unsaved_changes and not self.is_saving and not self.is_error:
            if not await self._save():
                break

    async def _save(self) -> bool:
        data = copy.deepcopy(self._latest)
        payload = dict(data)
        if photo_fingerprint(self._last_saved.get("photo")) == photo_fingerprint(data.get("photo")):
            payload.pop("photo", None)
        payload["id"] = self.resume_id

        self.is_saving = True
        self.is_error = False
        try:
            saved = await self._save_fn(payload)
        except Exception as e:
            self.is_error = True
            self.last_error = e
            logger.warning("Autosave failed resume_id=%s error=%s", self.resume_id, e)
            return False
        finally:
            self.is_saving = False

        self.resume_id = _saved_id(saved) or self.resume_id
        self._last_saved = data
        self.last_error = None
        logger.info("Autosaved resume_id=%s", self.resume_id)
        return True

    async def retry(self) -> bool:
        """User-triggered retry after a failed save."""
        if self.is_saving:
            return False
        ok = await self._save()
        if ok:
            await self._drain()
        return ok

    async def flush(self) -> None:
        """Skip the remaining debounce window and save now."""
        self._cancel_timer()
        await self._drain()

    async def close(self) -> None:
        cancelled = self._cancel_timer()
        if cancelled is not None:
            try:
                await cancelled
            except asyncio.CancelledError:
                pass
