import json

import httpx
import pytest
import respx
from httpx import Response

from freightmatch.notifications import ExpoPushSender, PushMessage, is_expo_push_token
from freightmatch.settings import PushSettings

ENDPOINT = "https://exp.host/--/api/v2/push/send"


def message(token: str) -> PushMessage:
    return PushMessage(to=token, title="Driver Found!", body="On the way", data={"trip_id": "t1"})


@pytest.fixture
def push_sender():
    sender = ExpoPushSender(PushSettings(batch_size=2), client=httpx.Client())
    yield sender
    sender.close()


@pytest.mark.unit
class TestTokenFormat:
    @pytest.mark.parametrize(
        "token",
        ["ExponentPushToken[abc123]", "ExpoPushToken[xyz-789]"],
    )
    def test_valid(self, token):
        assert is_expo_push_token(token)

    @pytest.mark.parametrize(
        "token",
        [None, "", "abc123", "ExponentPushToken[]", "FCM[abc]", "ExpoPushToken[abc"],
    )
    def test_invalid(self, token):
        assert not is_expo_push_token(token)


@pytest.mark.unit
class TestExpoPushSender:
    @respx.mock
    def test_sends_in_batches(self, push_sender):
        route = respx.post(ENDPOINT).mock(return_value=Response(200, json={"data": []}))

        sent = push_sender.send([message(f"ExpoPushToken[{i}]") for i in range(5)])

        assert sent == 5
        assert route.call_count == 3
        first_batch = json.loads(route.calls[0].request.content)
        assert [m["to"] for m in first_batch] == ["ExpoPushToken[0]", "ExpoPushToken[1]"]
        assert first_batch[0]["data"] == {"trip_id": "t1"}

    @respx.mock
    def test_invalid_tokens_dropped(self, push_sender):
        route = respx.post(ENDPOINT).mock(return_value=Response(200, json={"data": []}))

        sent = push_sender.send([message("not-a-token"), message("ExpoPushToken[ok]")])

        assert sent == 1
        batch = json.loads(route.calls.last.request.content)
        assert [m["to"] for m in batch] == ["ExpoPushToken[ok]"]

    @respx.mock
    def test_nothing_valid_makes_no_request(self, push_sender):
        route = respx.post(ENDPOINT)

        assert push_sender.send([message("bogus")]) == 0
        assert not route.called

    @respx.mock
    def test_http_error_is_logged_not_raised(self, push_sender, caplog):
        respx.post(ENDPOINT).mock(
            side_effect=[Response(500), Response(200, json={"data": []})]
        )

        sent = push_sender.send([message(f"ExpoPushToken[{i}]") for i in range(4)])

        assert sent == 2
        assert "Push batch of 2 failed" in caplog.text

    @respx.mock
    def test_transport_error_is_swallowed(self, push_sender):
        respx.post(ENDPOINT).mock(side_effect=httpx.ConnectError("connection refused"))

        assert push_sender.send([message("ExpoPushToken[a]")]) == 0

    @respx.mock
    def test_disabled_sender_is_silent(self):
        route = respx.post(ENDPOINT)
        sender = ExpoPushSender(PushSettings(enabled=False), client=httpx.Client())

        assert sender.send([message("ExpoPushToken[a]")]) == 0
        assert not route.called
