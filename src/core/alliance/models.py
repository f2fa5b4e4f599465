"""Alliance domain models"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AllianceStatus(str, Enum):
    ACTIVE = "Active"
    BROKEN = "Broken"
    EXPOSED = "Exposed"


@dataclass
class Alliance:
    """A group of houseguests working together"""

    id: str
    name: str
    member_ids: List[str]
    founder_id: str
    created_week: int = 1
    status: AllianceStatus = AllianceStatus.ACTIVE
    stability: float = 80.0  # 0~100, how likely it is to hold
    is_public: bool = False
    last_meeting_week: Optional[int] = None
    # houseguests blamed for the alliance breaking apart
    dissolved_by: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == AllianceStatus.ACTIVE

    def has_member(self, houseguest_id: str) -> bool:
        return houseguest_id in self.member_ids
