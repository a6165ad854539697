"""Privacy decision exports."""

from .chain import (  # noqa: F401
	HANDLER_ORDER,
	PrivacyAuthorizer,
	create_handler_chain,
	create_specific_handler,
)
from .decisions import HandlerResult, PrivacyRequest, PrivacyResponse  # noqa: F401
from .exceptions import GatewayError, PrivacyError, UnknownActionError  # noqa: F401
from .gateway import PersistenceGateway, PostgresGateway  # noqa: F401
from .models import HandlerTag, PrivacyAction, ProfileVisibility  # noqa: F401
