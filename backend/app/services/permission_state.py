"""Permission State — whether the client has granted what reminders need.

Invariants:
    - permitted is the conjunction of notification and location grants
    - Both flags start False: nothing fires until the client reports readiness
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class PermissionState:
    notifications_permitted: bool = False
    location_permitted: bool = False

    @property
    def permitted(self) -> bool:
        return self.notifications_permitted and self.location_permitted

    def update(
        self,
        notifications_permitted: bool | None = None,
        location_permitted: bool | None = None,
    ) -> None:
        if notifications_permitted is not None:
            self.notifications_permitted = notifications_permitted
        if location_permitted is not None:
            self.location_permitted = location_permitted
        logger.info(
            "Permissions updated: notifications=%s location=%s",
            self.notifications_permitted, self.location_permitted,
        )
