"""
Annotation history.

In-memory editing state of the detections on one image: a linear undo/redo
stack over immutable snapshots of the detection list, plus the original list as
loaded from the server. ``build_changes`` turns the difference between the two
into the added / modified / deleted changeset the save endpoint expects.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .enums import DetectionStatus

Snapshot = Tuple["DetectionDraft", ...]

_BOX_FIELDS = ("x_min", "y_min", "x_max", "y_max")


class DetectionDraft(BaseModel):
    """A detection as edited on the client."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    upload_id: Optional[str] = None
    label: str
    original_label: Optional[str] = None
    confidence: Optional[float] = None
    original_confidence: Optional[float] = None
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    status: DetectionStatus = DetectionStatus.model_generated
    is_new: bool = Field(default=False, description="Created in this editing session, not yet saved")


class AnnotationHistory:
    """
    Undo/redo history over the detections of one image.

    Every mutating operation records the state before it on the ``past`` stack and
    clears ``future``. While ``is_locked`` is set, mutations are ignored (the
    editor locks while a save is in flight).
    """

    def __init__(self, detections: Optional[List[DetectionDraft]] = None, limit: int = 100) -> None:
        self.limit = limit
        self.detections: Snapshot = tuple(detections or ())
        self.original_detections: Snapshot = self.detections
        self.past: List[Snapshot] = []
        self.future: List[Snapshot] = []
        self.selected_detection_id: Optional[str] = None
        self.is_locked = False

    # ------------------------------------------------------------------
    # Loading and history bookkeeping
    # ------------------------------------------------------------------

    def set_detections(self, detections: List[DetectionDraft]) -> None:
        """Load a fresh list from the server; it becomes the baseline, history is dropped."""
        if self.is_locked:
            return
        self.detections = tuple(detections)
        self.original_detections = self.detections
        self.past.clear()
        self.future.clear()
        self.selected_detection_id = None

    def _push(self) -> None:
        self.past.append(self.detections)
        if len(self.past) > self.limit:
            del self.past[0]
        self.future.clear()

    def save_state_before_edit(self) -> None:
        """Record the current state, for edits applied later without history (dragging a box)."""
        if self.is_locked:
            return
        self._push()

    def can_undo(self) -> bool:
        return bool(self.past)

    def can_redo(self) -> bool:
        return bool(self.future)

    def undo(self) -> None:
        if self.is_locked or not self.past:
            return
        self.future.append(self.detections)
        self.detections = self.past.pop()
        self._drop_stale_selection()

    def redo(self) -> None:
        if self.is_locked or not self.future:
            return
        self.past.append(self.detections)
        self.detections = self.future.pop()
        self._drop_stale_selection()

    def _drop_stale_selection(self) -> None:
        if self.selected_detection_id and self.get(self.selected_detection_id) is None:
            self.selected_detection_id = None

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def get(self, detection_id: str) -> Optional[DetectionDraft]:
        return next((d for d in self.detections if d.id == detection_id), None)

    def add_detection(
        self,
        label: str,
        x_min: float,
        y_min: float,
        x_max: float,
        y_max: float,
        upload_id: Optional[str] = None,
    ) -> Optional[DetectionDraft]:
        """Draw a new box. It is selected and marked ``user_created`` with full confidence."""
        if self.is_locked:
            return None
        detection = DetectionDraft(
            id=f"temp-{uuid4().hex}",
            upload_id=upload_id,
            label=label,
            original_label=label,
            confidence=1.0,
            original_confidence=1.0,
            x_min=x_min,
            y_min=y_min,
            x_max=x_max,
            y_max=y_max,
            status=DetectionStatus.user_created,
            is_new=True,
        )
        self._push()
        self.detections = self.detections + (detection,)
        self.selected_detection_id = detection.id
        return detection

    def _apply(self, detection_id: str, changes: Dict[str, Any]) -> bool:
        if self.get(detection_id) is None:
            return False
        self.detections = tuple(d.model_copy(update=changes) if d.id == detection_id else d for d in self.detections)
        return True

    def update_detection(self, detection_id: str, **changes: Any) -> None:
        if self.is_locked or self.get(detection_id) is None:
            return
        self._push()
        self._apply(detection_id, changes)

    def update_detection_no_history(self, detection_id: str, **changes: Any) -> None:
        if self.is_locked:
            return
        self._apply(detection_id, changes)

    def remove_detection(self, detection_id: str) -> None:
        if self.is_locked or self.get(detection_id) is None:
            return
        self._push()
        self.detections = tuple(d for d in self.detections if d.id != detection_id)
        if self.selected_detection_id == detection_id:
            self.selected_detection_id = None

    def verify_all_detections(self) -> None:
        """Confirm every detection as one undoable step. A no-op when all are reviewed."""
        if self.is_locked:
            return
        if all(d.status != DetectionStatus.model_generated for d in self.detections):
            return
        self._push()
        self.detections = tuple(
            d.model_copy(update={"status": DetectionStatus.user_confirmed}) for d in self.detections
        )

    def reset_detections(self) -> None:
        """Discard every edit and return to the loaded baseline."""
        if self.is_locked:
            return
        self.detections = self.original_detections
        self.past.clear()
        self.future.clear()
        self.selected_detection_id = None

    # ------------------------------------------------------------------
    # Change tracking
    # ------------------------------------------------------------------

    def has_changes(self) -> bool:
        return self.detections != self.original_detections

    def commit_changes(self) -> None:
        """Accept the current state as the new baseline (after a successful save)."""
        if self.is_locked:
            return
        self.original_detections = tuple(d.model_copy(update={"is_new": False}) for d in self.detections)
        self.detections = self.original_detections
        self.past.clear()
        self.future.clear()

    def build_changes(self) -> Dict[str, List[Any]]:
        """
        Changeset against the baseline.

        Returns:
            ``{"added": [...], "modified": [...], "deleted": [ids]}``; drafts in the
            first two lists are the current versions of the detections.
        """
        originals = {d.id: d for d in self.original_detections}
        current_ids = {d.id for d in self.detections}

        added = [d for d in self.detections if d.id not in originals]
        modified = [
            d
            for d in self.detections
            if d.id in originals and _differs(d, originals[d.id])
        ]
        deleted = [d.id for d in self.original_detections if d.id not in current_ids]
        return {"added": added, "modified": modified, "deleted": deleted}


def _differs(current: DetectionDraft, original: DetectionDraft) -> bool:
    if current.label != original.label or current.status != original.status:
        return True
    return any(getattr(current, name) != getattr(original, name) for name in _BOX_FIELDS)
