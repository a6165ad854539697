import pytest

from privacy_gate.domain.privacy import (
    HANDLER_ORDER,
    HandlerTag,
    PrivacyAction,
    PrivacyAuthorizer,
    PrivacyRequest,
    UnknownActionError,
    create_handler_chain,
    create_specific_handler,
)
from privacy_gate.domain.privacy.attendees import ViewAttendeesHandler
from privacy_gate.domain.privacy.carpool import ViewCarpoolHandler
from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyResponse
from privacy_gate.domain.privacy.handlers import ActionHandler, PolicyHandler
from privacy_gate.domain.privacy.profile import ViewProfileHandler
from privacy_gate.domain.privacy.schedule import ViewScheduleHandler


class _Recorder(PolicyHandler):
    def __init__(self, name, log, result=None):
        super().__init__()
        self.name = name
        self.log = log
        self.result = result or HandlerResult.unhandled()

    async def process(self, request):
        self.log.append(self.name)
        return self.result


def _walk(head):
    node = head
    while node is not None:
        yield node
        node = node.next_handler


def test_chain_order(gateway):
    head = create_handler_chain(gateway)
    assert [type(node) for node in _walk(head)] == [
        ViewProfileHandler,
        ViewAttendeesHandler,
        ViewCarpoolHandler,
        ViewScheduleHandler,
    ]
    assert tuple(type(node) for node in _walk(head)) == HANDLER_ORDER


def test_each_call_builds_a_fresh_chain(gateway):
    first = list(_walk(create_handler_chain(gateway)))
    second = list(_walk(create_handler_chain(gateway)))
    assert all(a is not b for a, b in zip(first, second))


def test_set_next_returns_successor():
    log: list[str] = []
    a, b, c = _Recorder("a", log), _Recorder("b", log), _Recorder("c", log)
    assert a.set_next(b).set_next(c) is c
    assert a.next_handler is b
    assert b.next_handler is c
    assert c.next_handler is None


@pytest.mark.asyncio
async def test_unclaimed_request_gets_default_deny():
    log: list[str] = []
    head = _Recorder("a", log)
    head.set_next(_Recorder("b", log))
    request = PrivacyRequest("u1", "u2", PrivacyAction.VIEW_PROFILE)

    response = await head.handle(request)

    assert log == ["a", "b"]
    assert response.allowed is False
    assert response.data is None
    assert response.handler is None


@pytest.mark.asyncio
async def test_claimed_denial_stops_traversal():
    log: list[str] = []
    denial = PrivacyResponse.failure("nope")
    head = _Recorder("a", log, HandlerResult.claim(denial))
    head.set_next(_Recorder("b", log, HandlerResult.claim(PrivacyResponse.success({}))))

    response = await head.handle(PrivacyRequest("u1", "u2", "view_profile"))

    assert log == ["a"]
    assert response is denial


@pytest.mark.asyncio
async def test_handlers_skip_other_actions(gateway, make_entry):
    gateway.add_user("u1")
    gateway.add_user("u2")
    gateway.add_schedule_entry("u2", make_entry("e1", days=1))
    chain = create_handler_chain(gateway)

    response = await chain.handle(PrivacyRequest("u1", "u2", PrivacyAction.VIEW_SCHEDULE))

    assert response.handler == "ViewScheduleHandler-Other"
    assert "get_event" not in gateway.calls
    assert "is_blocked" not in gateway.calls


@pytest.mark.parametrize(
    "action, handler_cls",
    [
        ("view_profile", ViewProfileHandler),
        (PrivacyAction.VIEW_ATTENDEES, ViewAttendeesHandler),
        ("view_carpool", ViewCarpoolHandler),
        (PrivacyAction.VIEW_SCHEDULE, ViewScheduleHandler),
    ],
)
def test_create_specific_handler(gateway, action, handler_cls):
    handler = create_specific_handler(action, gateway)
    assert type(handler) is handler_cls
    assert handler.next_handler is None


@pytest.mark.parametrize("action", ["view_friends", None, ""])
def test_create_specific_handler_unknown_action(gateway, action):
    with pytest.raises(UnknownActionError) as exc_info:
        create_specific_handler(action, gateway)
    assert str(exc_info.value) == f"Unknown action: {action}"
    assert exc_info.value.reason == "unknown_action"


@pytest.mark.asyncio
async def test_specific_handler_ignores_foreign_action(gateway):
    handler = create_specific_handler("view_schedule", gateway)
    result = await handler.process(PrivacyRequest("u1", "u2", "view_profile"))
    assert result.handled is False
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_base_action_handler_claims_not_implemented(gateway):
    handler = ActionHandler(gateway, PrivacyAction.VIEW_PROFILE)

    response = await handler.handle(PrivacyRequest("u1", "u2", "view_profile"))

    assert response.allowed is False
    assert response.reason == "Action view_profile is not implemented"
    assert response.handler == "ActionHandler-NotImplemented"
    assert response.tag is HandlerTag.NOT_IMPLEMENTED


@pytest.mark.asyncio
async def test_authorizer_routes_through_chain(gateway):
    gateway.add_user("u1")
    gateway.add_user("u2", "bob")
    authorizer = PrivacyAuthorizer(gateway)

    response = await authorizer.authorize(PrivacyRequest("u1", "u2", "view_profile"))

    assert response.allowed is True
    assert response.handler == "ViewProfileHandler-Public"
    assert response.data["username"] == "bob"


@pytest.mark.asyncio
async def test_authorizer_handler_for_shares_service(gateway):
    authorizer = PrivacyAuthorizer(gateway)
    handler = authorizer.handler_for("view_profile")
    assert isinstance(handler, ViewProfileHandler)
    with pytest.raises(UnknownActionError):
        authorizer.handler_for("view_everything")
