from __future__ import annotations

import pytest

from docscan.core.logging import RecordingEventSink


@pytest.fixture
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def check_text() -> str:
    return (
        "Check Number: A123456789\n"
        "Date: 05/15/2024\n"
        "Pay to the order of: John Smith\n"
        "Amount: $1,234.56"
    )


@pytest.fixture
def receipt_text() -> str:
    return (
        "BLUE BOTTLE COFFEE\n"
        "300 Webster St, Oakland CA\n"
        "Receipt #: R-00912\n"
        "2024-03-02 08:14\n"
        "Latte            4.50\n"
        "Croissant        3.25\n"
        "Tax              0.62\n"
        "TOTAL            8.37\n"
        "VISA ****4821"
    )
