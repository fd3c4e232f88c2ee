from datetime import datetime, timedelta

from app.services.wastage import UsageRecord

BASE_DATE = datetime(2026, 3, 2, 8, 0, 0)


def pull(start, end, day=0, usage_id=None):
    """Usage record: footage marks plus a day offset from BASE_DATE."""
    return UsageRecord(
        id=usage_id or f"u-{start}-{end}-{day}",
        start_point=start,
        end_point=end,
        usage_date=BASE_DATE + timedelta(days=day),
    )
