"""Shape tolerance of the response normalizer."""

from datetime import datetime, timezone

import pytest

from catalog.normalize import (
    SizeEntry,
    SwatchEntry,
    clamp_page,
    coerce_list,
    color_options,
    format_category_name,
    format_date,
    format_price,
    normalize_color_value,
    parse_product_color,
    parse_sizes,
    parse_swatches,
    to_product_view,
    total_pages,
    with_base,
)


def test_parse_sizes_accepts_native_and_json_text():
    """Sizes arrive as lists or as JSON text."""
    expected = [SizeEntry(name="M", stock=3)]

    assert parse_sizes('[{"name":"M","stock":3}]') == expected
    assert parse_sizes([{"name": "M", "stock": 3}]) == expected


@pytest.mark.parametrize("raw", ["not json", None, "", "{}", '{"name": "M"}', 42, [None, 3, "M"]])
def test_parse_sizes_degrades_to_empty(raw):
    """Unusable size data becomes an empty list."""
    assert parse_sizes(raw) == []


def test_parse_sizes_label_fallback_and_stock_coercion():
    """Labels fall back to the size code and stock is coerced."""
    raw = [
        {"sizeCode": "XL", "stock": 0},
        {"name": "S", "stock": "5"},
        {"name": "L", "stock": True},
        {"stock": 2},
        {"name": "", "sizeCode": "ignored"},
    ]

    assert parse_sizes(raw) == [
        SizeEntry(name="XL", stock=0),
        SizeEntry(name="S", stock=None),
        SizeEntry(name="L", stock=None),
    ]


def test_parse_swatches_drops_entries_without_color():
    """Swatches need a color name."""
    raw = '[{"hexColor": "#000"}, {"colorName": "Red"}, {"other": 1}, "blue"]'

    assert parse_swatches(raw) == [
        SwatchEntry(hexColor="#000", colorName=None),
        SwatchEntry(hexColor=None, colorName="Red"),
    ]
    assert parse_swatches("[broken") == []


def test_parse_product_color_from_text_or_mapping():
    """The product color may be text or a mapping."""
    assert parse_product_color('{"colorName": "Beige"}') == SwatchEntry(colorName="Beige")
    assert parse_product_color({"hexColor": "#fff"}) == SwatchEntry(hexColor="#fff")
    assert parse_product_color("[]") is None
    assert parse_product_color(None) is None


def test_coerce_list_never_raises():
    """Any input coerces to a list."""
    assert coerce_list('[1, 2]') == [1, 2]
    assert coerce_list('{"a": 1}') == []
    assert coerce_list(object()) == []


def test_format_price_priority():
    """Red beats yellow beats regular price."""
    assert format_price({"redPrice": "", "yellowPrice": "$20", "regularPrice": "$25"}) == "$20"
    assert format_price({"redPrice": " $15 ", "yellowPrice": "$20"}) == "$15"
    assert format_price({"regularPrice": "$25"}) == "$25"


def test_format_price_falls_back_to_prices_list():
    """The prices list is used when no column is set."""
    assert format_price({"redPrice": "", "prices": [{"price": 19.5}]}) == "$19.50"
    assert format_price({"prices": [{"formattedPrice": "€ 12,99", "price": 12.99}]}) == "€ 12,99"
    assert format_price({"prices": '[{"price": 7}]'}) == "$7.00"


@pytest.mark.parametrize(
    "record",
    [{}, {"redPrice": None, "prices": []}, {"prices": "oops"}, {"prices": [{"price": "12"}]}, {"regularPrice": 10}],
)
def test_format_price_without_usable_value(record):
    """No usable price renders a placeholder."""
    assert format_price(record) == "N/A"


def test_format_date():
    """ISO timestamps render in local time."""
    value = "2024-03-01T10:00:00Z"
    expected = datetime(2024, 3, 1, 10, tzinfo=timezone.utc).astimezone().strftime("%x, %X")

    assert format_date(value) == expected
    assert format_date("yesterday") == "yesterday"
    assert format_date(None) == "Unknown"
    assert format_date("") == "Unknown"


@pytest.mark.parametrize(
    "value",
    [
        "2024-03-01T10:00:00.1234+00:00",
        "2024-03-01 10:00:00.12+00",
        "2024-03-01T15:30:00.000000+0530",
        "2024-03-01T10:00:00.1234567Z",
    ],
)
def test_format_date_accepts_database_timestamps(value):
    """Short or long fractions and compact offsets parse on every supported Python."""
    expected = datetime(2024, 3, 1, 10, tzinfo=timezone.utc).astimezone().strftime("%x, %X")

    assert format_date(value) == expected


def test_format_category_name():
    """Slugs become title-cased words."""
    assert format_category_name("ladies_sport_bottoms_trousers") == "Ladies Sport Bottoms Trousers"
    assert format_category_name("shoes") == "Shoes"
    assert format_category_name("men__jeans") == "Men  Jeans"
    assert format_category_name(None) == ""
    assert format_category_name("") == ""


def test_normalize_color_value():
    """The color name wins over the hex code, lowercased and trimmed."""
    assert normalize_color_value(SwatchEntry(hexColor="#FFF", colorName=" Off White ")) == "off white"
    assert normalize_color_value(SwatchEntry(hexColor=" #ABC ", colorName="  ")) == "#abc"
    assert normalize_color_value(SwatchEntry()) is None


def test_color_options_deduplicate_and_sort():
    """Color options are unique and sorted."""
    records = [
        {"swatches": [{"colorName": "red", "hexColor": "#f00"}, {"colorName": "Blue"}]},
        {"swatches": '[{"colorName": "RED"}]'},
        {"swatches": None, "productColor": {"hexColor": "#123456"}},
        {"swatches": [{"colorName": "  "}]},
    ]

    assert color_options(records) == [
        {"value": "#123456", "label": "#123456", "swatch": "#123456"},
        {"value": "blue", "label": "Blue", "swatch": None},
        {"value": "red", "label": "red", "swatch": "#f00"},
    ]


def test_with_base():
    """Relative links are joined to their base."""
    assert with_base("https://www2.hm.com/", "/en_us/productpage.1.html") == "https://www2.hm.com/en_us/productpage.1.html"
    assert with_base("https://www2.hm.com/", "https://cdn.example/x.jpg") == "https://cdn.example/x.jpg"
    assert with_base("https://www2.hm.com/", None) is None


def test_total_pages_and_clamp_page():
    """Page counts and clamping agree."""
    assert total_pages(45, 20) == 3
    assert total_pages(0, 20) == 1
    assert total_pages(None, 20) is None
    assert clamp_page("7", 3) == 3
    assert clamp_page("2.5", None) == 2
    assert clamp_page("abc", 3, current=2) == 2
    assert clamp_page("0", 3, current=2) == 2


def test_product_view_from_legacy_row(catalog_records):
    """Legacy rows still produce a full view."""
    view = to_product_view(catalog_records[1])

    assert view.article_code == "0002"
    assert view.price == "$39.99"
    assert view.category_label == "Shoes"
    assert view.sizes == [SizeEntry(name="42", stock=None)]
    assert view.swatches == [SwatchEntry(hexColor="#FF0000", colorName="Red")]
    assert view.url is None
    assert view.image_alt == "Running Shoes"


def test_product_view_from_empty_row():
    """A sparse row gets placeholder text and an absolute image URL."""
    view = to_product_view({"articleCode": "x", "imageModelSrc": "/assets/a.jpg"})

    assert view.title == "Product"
    assert view.price == "N/A"
    assert view.updated == "Unknown"
    assert view.image_url == "https://image.hm.com/assets/a.jpg"
    assert view.sizes == [] and view.swatches == []
