"""Shared product fixtures shaped like rows from several ingestion runs."""

import pytest


@pytest.fixture
def catalog_records():
    return [
        {
            "articleCode": "0001",
            "title": "Relaxed Fit Jeans",
            "category": "men_jeans",
            "regularPrice": "$34.99",
            "redPrice": None,
            "yellowPrice": None,
            "imageModelAlt": "Model wearing light blue jeans",
            "swatches": [{"colorName": "Light Blue", "hexColor": "#ADD8E6"}],
            "sizes": [{"name": "32", "stock": 4}],
            "createdAt": "2024-01-01T10:00:00Z",
            "updatedAt": "2024-03-01T10:00:00Z",
        },
        {
            "articleCode": "0002",
            "title": "Running Shoes",
            "category": "shoes",
            "regularPrice": "$59.99",
            "redPrice": "$39.99",
            "imageModelAlt": None,
            "swatches": '[{"colorName": "Red", "hexColor": "#FF0000"}]',
            "sizes": '[{"sizeCode": "42", "stock": null}]',
            "createdAt": "2024-01-02T10:00:00Z",
            "updatedAt": "2024-03-02T10:00:00Z",
        },
        {
            "articleCode": "0003",
            "title": "Canvas Sneakers",
            "category": "shoes",
            "regularPrice": "$45.00",
            "redPrice": "",
            "yellowPrice": "$40.00",
            "imageModelAlt": "Sneakers on a bench",
            "swatches": None,
            "productColor": '{"colorName": "Black", "hexColor": "#000000"}',
            "createdAt": "2024-01-03T10:00:00Z",
            "updatedAt": "2024-03-03T10:00:00Z",
        },
        {
            "articleCode": "0004",
            "title": "Ribbed Tank Top",
            "category": "ladies_tops",
            "regularPrice": "$12.99",
            "redPrice": "",
            "yellowPrice": None,
            "imageModelAlt": "Model in a sporty tank",
            "swatches": "not json",
            "productColor": {"colorName": "White", "hexColor": "#FFFFFF"},
            "createdAt": "2024-01-04T10:00:00Z",
            "updatedAt": None,
        },
    ]
