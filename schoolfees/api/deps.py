from typing import Optional

from fastapi import Header


async def get_changed_by(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Acting staff member for the audit trail. Authentication happens upstream."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None
