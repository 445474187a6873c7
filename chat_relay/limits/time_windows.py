"""Time window utilities for request limits."""
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimeWindowHandler:
    """Maps points in time to fixed-length window buckets."""

    @staticmethod
    def get_key_suffix(time: datetime, window_minutes: int) -> str:
        """Generate the key of the window containing ``time``.

        Windows are aligned to the epoch, so a 15-minute window starts at
        :00, :15, :30 and :45 of every hour.

        Args:
            time: The datetime to generate the key for. Naive values are taken as UTC.
            window_minutes: Length of one window in minutes

        Returns:
            A string key such as ``2024-05-01-13-45``

        Raises:
            ValueError: If window_minutes is not positive
        """
        if window_minutes <= 0:
            raise ValueError(f"Unsupported window length: {window_minutes}")
        if time.tzinfo is None:
            time = time.replace(tzinfo=timezone.utc)
        minutes_since_epoch = int((time - EPOCH).total_seconds() // 60)
        window_bucket = (minutes_since_epoch // window_minutes) * window_minutes
        window_start = EPOCH + timedelta(minutes=window_bucket)
        return window_start.strftime("%Y-%m-%d-%H-%M")

    @staticmethod
    def seconds_until_next(time: datetime, window_minutes: int) -> int:
        """Seconds from ``time`` until the following window starts."""
        if time.tzinfo is None:
            time = time.replace(tzinfo=timezone.utc)
        elapsed = (time - EPOCH).total_seconds()
        window_seconds = window_minutes * 60
        return int(window_seconds - (elapsed % window_seconds)) or window_seconds
