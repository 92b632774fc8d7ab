"""Integration tests for the inventory admin use cases."""

import pytest

from storefront.application.set_inventory import SetInventoryHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.domain.exceptions import ProductNotFoundError, ValidationError
from storefront.domain.model.value_objects import Money
from tests.fakes import FakeInventoryRepository, make_stock


class TestSetInventory:

    def test_creates_entry_with_name_and_price(self):
        repo = FakeInventoryRepository()
        SetInventoryHandler(repo).handle("sku-1", 4, name="Widget", price="15.00")
        entry = repo.get_by_product_id("sku-1")
        assert entry.name == "Widget"
        assert entry.quantity_on_hand == 4
        assert entry.available

    def test_unknown_product_without_details(self):
        with pytest.raises(ProductNotFoundError):
            SetInventoryHandler(FakeInventoryRepository()).handle("sku-1", 4)

    def test_update_keeps_existing_details(self):
        repo = FakeInventoryRepository([make_stock("sku-1", "Widget", "15.00", 4, sale_price="12.00")])
        SetInventoryHandler(repo).handle("sku-1", 0)
        entry = repo.get_by_product_id("sku-1")
        assert entry.name == "Widget"
        assert entry.sale_price == Money.of("12.00")
        assert not entry.available

    def test_empty_sale_price_ends_sale(self):
        repo = FakeInventoryRepository([make_stock("sku-1", "Widget", "15.00", 4, sale_price="12.00")])
        SetInventoryHandler(repo).handle("sku-1", 4, sale_price="")
        assert repo.get_by_product_id("sku-1").effective_price == Money.of("15.00")

    def test_negative_quantity_rejected(self):
        repo = FakeInventoryRepository([make_stock("sku-1", "Widget", "15.00", 4)])
        with pytest.raises(ValidationError):
            SetInventoryHandler(repo).handle("sku-1", -1)
        assert repo.on_hand("sku-1") == 4


class TestShowInventory:

    def test_lines_show_effective_price(self):
        repo = FakeInventoryRepository([
            make_stock("sku-1", "Widget", "15.00", 0),
            make_stock("sku-2", "Gadget", "25.00", 3, sale_price="20.00"),
        ])
        lines = {line.product_id: line for line in ShowInventoryHandler(repo).handle()}
        assert lines["sku-1"].available is False
        assert lines["sku-2"].price == "$20.00"
        assert lines["sku-2"].on_hand == 3
