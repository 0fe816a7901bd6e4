# flowbuilder/visual/bridge.py
"""Hand-off of node editing to a host-supplied editor."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import structlog

logger = structlog.get_logger(__name__)


class NoticeLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"


@dataclass(frozen=True)
class Notice:
    """User-facing message raised by the editor."""
    title: str
    message: str
    level: NoticeLevel = NoticeLevel.INFO


class EditingProvider(ABC):
    """Host collaborator that presents its own editing surface.

    ``on_edit_node`` is a request only. The host commits changes later by
    calling ``FlowEditor.update_node_data`` with the same node ID, or never.
    """

    @abstractmethod
    def on_edit_node(self, node_id: str, node_type: str, current_config: Dict[str, Any]) -> None:
        pass

    def notify(self, notice: Notice) -> None:
        logger.info("editor_notice", title=notice.title, message=notice.message, level=notice.level.value)

    def focus_node(self, node_id: str) -> None:
        pass

    def confirm(self, title: str, message: str) -> bool:
        """Ask the user to confirm a destructive action."""
        return True
