"""Alert headers consumed by the front-end to show notifications.

Success alerts carry a message key (``{app}.{entity}.{event}``) and the
affected id; failure alerts carry an error key and the entity name. The
application name prefixing every header comes from
``settings.ALERT_APPLICATION_NAME``.
"""

import logging
from typing import Dict

from django.conf import settings

logger = logging.getLogger(__name__)


def _app_name() -> str:
    return getattr(settings, "ALERT_APPLICATION_NAME", "foodOrdersApp")


def alert(message: str, param: str) -> Dict[str, str]:
    app = _app_name()
    return {f"X-{app}-alert": message, f"X-{app}-params": param}


def entity_creation_alert(entity_name: str, param: str) -> Dict[str, str]:
    return alert(f"{_app_name()}.{entity_name}.created", param)


def entity_update_alert(entity_name: str, param: str) -> Dict[str, str]:
    return alert(f"{_app_name()}.{entity_name}.updated", param)


def entity_deletion_alert(entity_name: str, param: str) -> Dict[str, str]:
    return alert(f"{_app_name()}.{entity_name}.deleted", param)


def failure_alert(entity_name: str, error_key: str, default_message: str) -> Dict[str, str]:
    """Build failure headers and log the failure.

    Args:
        entity_name: Entity the request was about, e.g. ``foodOrder``.
        error_key: Short key the client translates, e.g. ``idexists``.
        default_message: Human readable message, only logged.
    """
    logger.error("Entity processing failed, %s", default_message)
    app = _app_name()
    return {f"X-{app}-error": f"error.{error_key}", f"X-{app}-params": entity_name}
