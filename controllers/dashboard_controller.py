from typing import Any, Dict

from models.session_models import DashboardSession


async def get_overview(session: DashboardSession) -> Dict[str, Any]:
    """Refresh and return the dashboard overview.

    Sections whose fetch failed keep their previous values; `loaded` says
    which ones are fresh.
    """
    loaded = await session.overview.load()
    return {"loaded": loaded, **session.overview.view()}
