"""
Tests for the device state schemas and the supervisor API client.
"""

import httpx
import pytest

from livesync.device import AppState, DeviceAPI, DeviceStatus
from livesync.errors import DeviceStatusError

STATUS_BODY = {
    "status": "success",
    "appState": "applied",
    "overallDownloadProgress": None,
    "containers": [
        {
            "status": "Running",
            "serviceName": "web",
            "appId": 1011165,
            "imageId": 1151023,
            "serviceId": 21450,
            "containerId": "4c1f53f1f4a06a18c6f28f8c0d1e3ef1b0c2e8d62ab3f01e9f4b0c4d6e9a7b21",
            "createdAt": "2026-10-18T09:21:37.000Z",
        }
    ],
    "images": [
        {"name": "registry/web:delta", "serviceName": "web", "status": "Downloaded", "downloadProgress": None}
    ],
}


def make_api(handler):
    return DeviceAPI("http://192.168.1.20:48484", transport=httpx.MockTransport(handler))


class TestDeviceStatus:
    """Tests for DeviceStatus parsing."""

    def test_parses_supervisor_payload(self):
        status = DeviceStatus.model_validate(STATUS_BODY)

        assert status.is_settled
        assert status.app_state == AppState.APPLIED
        container = status.container_for("web")
        assert container.container_id.startswith("4c1f53")
        assert container.service_id == 21450
        assert status.images[0].service_name == "web"

    def test_missing_container(self):
        status = DeviceStatus.model_validate(STATUS_BODY)
        assert status.container_for("api") is None

    def test_applying_is_not_settled(self):
        status = DeviceStatus.model_validate({**STATUS_BODY, "appState": "applying"})
        assert not status.is_settled

    def test_unknown_app_state_is_kept(self):
        status = DeviceStatus.model_validate({**STATUS_BODY, "appState": "rebooting"})
        assert status.app_state == "rebooting"
        assert not status.is_settled

    def test_accepts_field_names(self):
        status = DeviceStatus(app_state="applied", containers=[])
        assert status.is_settled


class TestDeviceAPI:
    """Tests for DeviceAPI against a mock transport."""

    @pytest.mark.asyncio
    async def test_get_status(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=STATUS_BODY)

        async with make_api(handler) as api:
            status = await api.get_status()

        assert status.is_settled
        assert requests[0].method == "GET"
        assert requests[0].url.path == "/v2/state/status"

    @pytest.mark.asyncio
    async def test_server_error_is_retryable(self):
        api = make_api(lambda request: httpx.Response(503, text="supervisor busy"))

        with pytest.raises(DeviceStatusError) as exc_info:
            await api.get_status()
        await api.close()

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value, OSError)

    @pytest.mark.asyncio
    async def test_client_error_is_not_retryable(self):
        api = make_api(lambda request: httpx.Response(401, text="unauthorized"))

        with pytest.raises(DeviceStatusError) as exc_info:
            await api.get_status()
        await api.close()

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        api = make_api(handler)
        with pytest.raises(DeviceStatusError, match="Network error"):
            await api.get_status()
        await api.close()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        api = make_api(handler)
        with pytest.raises(DeviceStatusError, match="Request timeout"):
            await api.get_status()
        await api.close()

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        api = make_api(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(DeviceStatusError) as exc_info:
            await api.get_status()
        await api.close()

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_ping(self):
        ok = make_api(lambda request: httpx.Response(200, text="OK"))
        down = make_api(lambda request: httpx.Response(500))

        assert await ok.ping() is True
        assert await down.ping() is False
        await ok.close()
        await down.close()

    def test_for_address(self):
        api = DeviceAPI.for_address("10.0.0.5")
        assert api.base_url == "http://10.0.0.5:48484"
