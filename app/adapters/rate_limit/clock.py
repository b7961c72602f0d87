"""Time source for the daily rate limit window."""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta, tzinfo
from datetime import time as dt_time
from typing import Callable


class SystemClock:
    """Wall clock with a midnight-aligned window boundary.

    Args:
        time_source: Function returning UNIX time in seconds.
        tz: Timezone whose midnight closes the window. ``None`` uses the
            process's local timezone.
    """

    def __init__(
        self,
        *,
        time_source: Callable[[], float] = time.time,
        tz: tzinfo | None = None,
    ) -> None:
        self._time_source = time_source
        self._tz = tz

    def now(self) -> float:
        return self._time_source()

    def _local_date(self, ts: float) -> date:
        if self._tz is None:
            return datetime.fromtimestamp(ts).date()
        return datetime.fromtimestamp(ts, tz=self._tz).date()

    def next_window_boundary(self) -> float:
        """Return epoch seconds of the first midnight strictly after now()."""
        tomorrow = self._local_date(self.now()) + timedelta(days=1)
        if self._tz is None:
            # Naive local time resolves the UTC offset for that date (DST aware)
            midnight = datetime.combine(tomorrow, dt_time.min).astimezone()
        else:
            midnight = datetime.combine(tomorrow, dt_time.min, tzinfo=self._tz)
        return midnight.timestamp()
