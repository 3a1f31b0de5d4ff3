"""
Cold-start routing for the member app
"""
import enum
import logging

from app.client.org_context import OrganizationContextStore

logger = logging.getLogger(__name__)


class LaunchRoute(str, enum.Enum):
    WELCOME = "welcome"
    ORG_CODE = "org_code"
    HOME = "home"


def resolve_launch_route(context: OrganizationContextStore, has_session: bool) -> LaunchRoute:
    """
    Pick the first screen.

    A fresh sign-out always lands on the welcome screen, once; the next launch
    goes through normal session routing.
    """
    if context.consume_signed_out():
        logger.debug("Sign-out flag consumed, showing welcome")
        return LaunchRoute.WELCOME

    if not has_session:
        return LaunchRoute.WELCOME
    if context.get_active_organization() is None:
        return LaunchRoute.ORG_CODE
    return LaunchRoute.HOME
