import pytest
from decimal import Decimal

from stockboard.domain.errors import HoldingValidationError
from stockboard.domain.models import Exchange, Holding
from stockboard.domain.models.holding import to_decimal
from stockboard.domain.services.portfolio_aggregator import PortfolioAggregator, resolve_price


def _holding(symbol, price, qty, sector="Technology", cmp=None):
    return Holding(
        symbol=symbol,
        sector=sector,
        exchange=Exchange.SP,
        purchase_price=Decimal(price),
        quantity=qty,
        cmp=Decimal(cmp) if cmp is not None else None,
    )


def test_investment_is_exact_product():
    holding = _holding("XYZ", "0.1", 3)
    assert holding.investment == Decimal("0.3")


def test_valuation_fields_with_live_price():
    agg = PortfolioAggregator()
    view = agg.aggregate([_holding("AAPL", "150", 10)], {"AAPL": Decimal("165")})

    v = view.valuations[0]
    assert v.cmp == Decimal("165")
    assert v.investment == Decimal("1500")
    assert v.present_value == Decimal("1650")
    assert v.gain_loss == v.present_value - v.investment
    assert v.gain_loss_percent == Decimal("10")
    assert v.portfolio_percent == Decimal("100")


def test_zero_investment_has_zero_percentages():
    agg = PortfolioAggregator()
    view = agg.aggregate([_holding("FREE", "0", 5)], {"FREE": Decimal("12")})

    v = view.valuations[0]
    assert v.investment == Decimal("0")
    assert v.present_value == Decimal("60")
    assert v.gain_loss_percent == Decimal("0")
    assert v.portfolio_percent == Decimal("0")
    assert view.summary.total_gain_loss_percent == Decimal("0")


def test_same_sector_investment_is_exact_sum():
    agg = PortfolioAggregator()
    holdings = [
        _holding("AAPL", "150", 10),
        _holding("MSFT", "300.25", 4),
        _holding("TSLA", "200", 2, sector="Consumer Goods"),
    ]
    view = agg.aggregate(holdings, {})

    tech = view.sectors["Technology"]
    assert tech.investment == Decimal("2701.00")
    assert tech.count == 2
    assert view.sectors["Consumer Goods"].investment == Decimal("400")
    assert list(view.sectors) == ["Technology", "Consumer Goods"]


def test_price_resolution_order():
    holding = _holding("AAPL", "150", 1, cmp="160")

    assert resolve_price(holding, {"AAPL": Decimal("170")}) == Decimal("170")
    assert resolve_price(holding, {}) == Decimal("160")
    # non-positive live price falls through to the cached cmp
    assert resolve_price(holding, {"AAPL": Decimal("0")}) == Decimal("160")
    assert resolve_price(_holding("AAPL", "150", 1), {}) == Decimal("150")


def test_summary_percent_is_ratio_of_totals():
    agg = PortfolioAggregator()
    holdings = [_holding("AAPL", "100", 10), _holding("MSFT", "100", 10)]
    view = agg.aggregate(holdings, {"AAPL": Decimal("120"), "MSFT": Decimal("100")})

    assert view.summary.total_investment == Decimal("2000")
    assert view.summary.total_present_value == Decimal("2200")
    assert view.summary.total_gain_loss == Decimal("200")
    assert view.summary.total_gain_loss_percent == Decimal("10")
    assert view.summary.count == 2


def test_empty_portfolio():
    view = PortfolioAggregator().aggregate([], {})
    assert view.valuations == []
    assert view.sectors == {}
    assert view.summary.total_investment == Decimal("0")
    assert view.to_dict()["summary"]["count"] == 0


def test_sort_valuations():
    agg = PortfolioAggregator()
    holdings = [_holding("AAPL", "100", 1), _holding("MSFT", "100", 1), _holding("TSLA", "100", 1)]
    prices = {"AAPL": Decimal("110"), "MSFT": Decimal("90"), "TSLA": Decimal("150")}
    valuations = agg.value_holdings(holdings, prices)

    ordered = agg.sort_valuations(valuations, "gain_loss", descending=True)
    assert [v.symbol for v in ordered] == ["TSLA", "AAPL", "MSFT"]

    by_symbol = agg.sort_valuations(reversed(valuations), "symbol")
    assert [v.symbol for v in by_symbol] == ["AAPL", "MSFT", "TSLA"]

    with pytest.raises(ValueError):
        agg.sort_valuations(valuations, "not_a_field")


def test_holding_rejects_negative_values():
    with pytest.raises(HoldingValidationError):
        _holding("AAPL", "-1", 1)
    with pytest.raises(HoldingValidationError):
        _holding("AAPL", "1", -1)
    with pytest.raises(HoldingValidationError):
        _holding("  ", "1", 1)


def test_storage_dict_round_trip_keeps_camel_case_keys():
    holding = _holding("AAPL", "150.5", 10, cmp="170")
    data = holding.to_storage_dict()

    assert data == {
        "name": "AAPL",
        "sector": "Technology",
        "exchange": "S&P",
        "purchasePrice": 150.5,
        "quantity": 10,
        "cmp": 170.0,
        "peRatio": None,
        "latestEarnings": None,
    }
    assert Holding.from_storage_dict(data) == holding


def test_from_storage_dict_rejects_fractional_quantity():
    with pytest.raises(HoldingValidationError):
        Holding.from_storage_dict({"name": "AAPL", "purchasePrice": 1, "quantity": 1.5})


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "-Infinity", Decimal("NaN")])
def test_to_decimal_rejects_non_finite(value):
    with pytest.raises(HoldingValidationError):
        to_decimal(value)


def test_from_storage_dict_requires_name():
    with pytest.raises(HoldingValidationError):
        Holding.from_storage_dict({"name": None, "purchasePrice": 1, "quantity": 1})
    with pytest.raises(HoldingValidationError):
        Holding.from_storage_dict({"purchasePrice": 1, "quantity": 1})
