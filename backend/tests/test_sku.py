import pytest

from electrosense.services.sku_service import SkuAllocator
from electrosense.utils.transactions import StoreError


def test_first_sku_under_a_prefix(store):
    assert SkuAllocator(store).next_sku("micr") == "MICR0001"


def test_next_sku_follows_highest_suffix(store, make_product):
    make_product(sku="MICR0002")
    make_product(sku="MICR0010", name="Raspberry Pi Pico")
    make_product(sku="MICRX99", name="Odd One")
    make_product(sku="SENS0042", name="DHT22")

    assert SkuAllocator(store).next_sku("MICR") == "MICR0011"
    assert SkuAllocator(store).next_sku("SENS") == "SENS0043"


def test_default_prefix(store):
    assert SkuAllocator(store).next_sku(None) == "GEN0001"


def test_scan_failure_falls_back_to_clock(store, monkeypatch):
    def _broken(*args, **kwargs):
        raise StoreError("store unavailable")

    monkeypatch.setattr(store, "query", _broken)
    monkeypatch.setattr("electrosense.services.sku_service.time.time", lambda: 1700000123.5)

    assert SkuAllocator(store).next_sku("TOOL") == "TOOL3500"


@pytest.mark.parametrize("width,expected", [(3, "GEN001"), (6, "GEN000001")])
def test_pad_width(store, width, expected):
    assert SkuAllocator(store, pad_width=width).next_sku("GEN") == expected
