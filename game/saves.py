"""SaveManager: one JSON snapshot per slot, committed atomically.

A save is written to a temporary file beside the slot file, flushed to disk
and then moved over the slot with ``os.replace``.  A crash at any point
leaves either the old snapshot or the new one, never a partial file.
"""
from __future__ import annotations

import json
import math
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, List

from config import SAVE_DIR, SAVE_FILE_TEMPLATE, SAVE_FORMAT_VERSION, SAVE_SLOT_COUNT
from game.entities import GameState, SaveSlot
from game.errors import InvalidArgument, SaveCorrupted, SaveFailed, SaveNotFound


def _is_calendar_timestamp(value: Any) -> bool:
    """True for a finite number the platform can turn into a local date."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    try:
        time.localtime(value)
    except (OverflowError, OSError, ValueError):
        return False
    return True


class SaveManager:
    def __init__(
        self,
        save_dir: Path = SAVE_DIR,
        slot_count: int = SAVE_SLOT_COUNT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.save_dir = Path(save_dir)
        self.slot_count = slot_count
        self.clock = clock

    @property
    def slot_ids(self) -> range:
        return range(1, self.slot_count + 1)

    def check_slot(self, slot_id: int) -> int:
        if isinstance(slot_id, bool) or not isinstance(slot_id, int) or slot_id not in self.slot_ids:
            raise InvalidArgument(f"Slot must be between 1 and {self.slot_count}.")
        return slot_id

    def path_for(self, slot_id: int) -> Path:
        return self.save_dir / SAVE_FILE_TEMPLATE.format(slot_id=self.check_slot(slot_id))

    # ------------------------------------------------------------------
    # Save / Load
    # ------------------------------------------------------------------

    def save(self, slot_id: int, state: GameState) -> SaveSlot:
        path = self.path_for(slot_id)
        saved_at = float(self.clock())
        payload = {
            "format": SAVE_FORMAT_VERSION,
            "slot": slot_id,
            "saved_at": saved_at,
            "state": state.to_dict(),
        }
        try:
            self.save_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(path, json.dumps(payload, indent=2))
        except OSError as exc:
            raise SaveFailed(f"Could not save slot {slot_id}: {exc}") from exc
        return SaveSlot(slot_id=slot_id, saved_at=saved_at)

    def _write_atomic(self, path: Path, text: str) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _read_payload(self, slot_id: int) -> Dict:
        path = self.path_for(slot_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise SaveNotFound(f"Slot {slot_id} is empty.") from None
        except OSError as exc:
            raise SaveCorrupted(f"Slot {slot_id} could not be read: {exc}") from exc
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError) as exc:
            # ValueError covers bad UTF-8, bad JSON and over-long integer literals
            raise SaveCorrupted(f"Slot {slot_id} is not a valid save file.") from exc
        if not isinstance(payload, dict):
            raise SaveCorrupted(f"Slot {slot_id} is not a valid save file.")
        save_format = payload.get("format")
        if isinstance(save_format, bool) or save_format != SAVE_FORMAT_VERSION:
            raise SaveCorrupted(f"Slot {slot_id} has an unsupported save format.")
        stored_slot = payload.get("slot")
        if isinstance(stored_slot, bool) or stored_slot != slot_id:
            raise SaveCorrupted(f"Slot {slot_id} holds data for another slot.")
        if not _is_calendar_timestamp(payload.get("saved_at")):
            raise SaveCorrupted(f"Slot {slot_id} has an invalid save timestamp.")
        return payload

    def load_slot(self, slot_id: int) -> SaveSlot:
        """Load a slot's snapshot together with its save timestamp."""
        payload = self._read_payload(slot_id)
        try:
            state = GameState.from_dict(payload.get("state"))
        except ValueError as exc:
            raise SaveCorrupted(f"Slot {slot_id} failed validation: {exc}") from exc
        return SaveSlot(slot_id=slot_id, saved_at=float(payload["saved_at"]), state=state)

    def load(self, slot_id: int) -> GameState:
        return self.load_slot(slot_id).state

    def list_slots(self) -> List[SaveSlot]:
        """Metadata for every slot; snapshots are validated but not returned."""
        slots = []
        for slot_id in self.slot_ids:
            try:
                loaded = self.load_slot(slot_id)
            except SaveNotFound:
                slots.append(SaveSlot(slot_id=slot_id))
            except SaveCorrupted:
                slots.append(SaveSlot(slot_id=slot_id, corrupted=True))
            else:
                slots.append(SaveSlot(slot_id=slot_id, saved_at=loaded.saved_at))
        return slots

    def delete(self, slot_id: int) -> bool:
        path = self.path_for(slot_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise SaveFailed(f"Could not delete slot {slot_id}: {exc}") from exc
        return True
