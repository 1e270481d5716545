"""Popup workflow: states, reducer, presenter and controller."""

from .controller import WorkflowController
from .states import WorkflowState, WorkflowView, derive_view

__all__ = ["WorkflowController", "WorkflowState", "WorkflowView", "derive_view"]
