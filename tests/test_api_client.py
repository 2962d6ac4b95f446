"""Bot HTTP client against the real API app (ASGI transport, no network)."""

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from bot.api_client import CatalogClient, CatalogClientError
from bot.browser import CatalogBrowser, OVERLAY_OPEN


@pytest_asyncio.fixture
async def catalog_client(api_app):
    transport = httpx.ASGITransport(app=api_app)
    client = CatalogClient(client=httpx.AsyncClient(transport=transport, base_url="http://test"))
    yield client
    await client.close()


@pytest.fixture
def seeded(make_coffee):
    first = make_coffee(name="Yirgacheffe", roaster="Acme", roast_level="light",
                        origin="Ethiopia", current_price=Decimal("12.50"))
    make_coffee(name="Espresso Forte", roaster="Bean Co", roast_level="dark", in_stock=False)
    return first


class TestCatalogClient:
    @pytest.mark.asyncio
    async def test_list_and_filters(self, catalog_client, seeded):
        everything = await catalog_client.list_coffees()
        in_stock = await catalog_client.list_coffees(in_stock=True)
        by_level = await catalog_client.list_coffees(roast_level="dark")
        by_search = await catalog_client.list_coffees(search="ETHI")

        assert [c["name"] for c in everything] == ["Espresso Forte", "Yirgacheffe"]
        assert [c["name"] for c in in_stock] == ["Yirgacheffe"]
        assert [c["name"] for c in by_level] == ["Espresso Forte"]
        assert [c["name"] for c in by_search] == ["Yirgacheffe"]

    @pytest.mark.asyncio
    async def test_not_found_carries_server_message(self, catalog_client):
        with pytest.raises(CatalogClientError) as exc_info:
            await catalog_client.get_coffee(999)

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Coffee not found"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = CatalogClient(client=httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        ))

        with pytest.raises(CatalogClientError) as exc_info:
            await client.list_coffees()

        assert exc_info.value.status_code is None
        await client.close()


class TestBrowserAgainstApi:
    @pytest.mark.asyncio
    async def test_browse_filter_and_open_details(self, catalog_client, seeded):
        browser = CatalogBrowser(catalog_client)

        assert await browser.refresh() is True
        browser.set_roaster("Acme")
        details = await browser.open_details(seeded.id)

        assert [c["name"] for c in browser.filtered] == ["Yirgacheffe"]
        assert browser.overlay_state == OVERLAY_OPEN
        assert len(details["priceHistory"]) == 1
